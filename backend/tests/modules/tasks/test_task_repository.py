# tests/modules/tasks/test_task_repository.py
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import AutoReconnect

from taskminder.core.counters import CounterService
from taskminder.core.errors import UnavailableError

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

def _doc(title="Pay rent", due=NOW, **extra):
    return {"title": title, "description": "", "due_date": due, "is_completed": False,
            "created_at": NOW, "updated_at": NOW, **extra}

async def test_counter_sequences_are_independent(db_client):
    counters = CounterService(db_client)
    assert [await counters.next_sequence("tasks") for _ in range(3)] == [1, 2, 3]
    assert await counters.next_sequence("other") == 1

async def test_counter_failure_raises_unavailable():
    broken = MagicMock()
    broken.find_one_and_update = AsyncMock(side_effect=AutoReconnect("lost"))
    counters = CounterService({"counters": broken})
    with pytest.raises(UnavailableError):
        await counters.next_sequence("tasks")

async def test_create_stores_integer_id_and_naive_utc(task_repo, db_client):
    task = await task_repo.create(_doc())
    assert task.id == 1
    raw = await db_client["tasks"].find_one({"_id": 1})
    assert raw["title"] == "Pay rent"
    assert raw["due_date"].tzinfo is None
    assert raw["due_date"] == NOW.replace(tzinfo=None)
    assert "id" not in raw

async def test_get_by_id_returns_utc_aware(task_repo):
    task = await task_repo.create(_doc())
    fetched = await task_repo.get_by_id(task.id)
    assert fetched.due_date == NOW
    assert fetched.due_date.tzinfo is not None

async def test_replace_fields_keeps_created_at(task_repo):
    task = await task_repo.create(_doc())
    later = NOW + timedelta(hours=1)
    changed = task.model_copy(update={"title": "Changed", "updated_at": later})
    assert await task_repo.replace_fields(changed)
    stored = await task_repo.get_by_id(task.id)
    assert stored.title == "Changed"
    assert stored.updated_at == later
    assert stored.created_at == NOW

async def test_writes_to_missing_task_return_false(task_repo):
    assert await task_repo.mark_complete(5, updated_at=NOW) is False
    assert await task_repo.delete(5) is False

async def test_list_due_between_filters_and_sorts(task_repo):
    later = await task_repo.create(_doc("Later", NOW + timedelta(minutes=30)))
    sooner = await task_repo.create(_doc("Sooner", NOW + timedelta(minutes=10)))
    await task_repo.create(_doc("Done", NOW + timedelta(minutes=5), is_completed=True))
    await task_repo.create(_doc("Past", NOW - timedelta(minutes=1)))

    due = await task_repo.list_due_between(NOW, NOW + timedelta(minutes=30))
    assert [t.id for t in due] == [sooner.id, later.id]

async def test_create_indexes_is_repeatable(task_repo):
    await task_repo.create_indexes()
    await task_repo.create_indexes()
    assert await task_repo.count() == 0
