# taskminder/modules/tasks/services.py

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from fastapi import Request
from loguru import logger

from taskminder.core.errors import InvalidInputError, NotFoundError
from .models import TaskInDB, TaskUpdateInternal, ensure_utc
from .repository import TaskRepository

STORE_RESOLUTION = timedelta(milliseconds=1)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def _truncate(value: datetime) -> datetime:
    # The store keeps millisecond precision; stamp what will be read back
    return value.replace(microsecond=value.microsecond // 1000 * 1000)

class TaskManager:
    """Business rules on top of the task store.

    Every method raises InvalidInputError, NotFoundError or (from the
    repository) UnavailableError; nothing else is part of the contract.
    """

    def __init__(self, repository: TaskRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    def _now(self) -> datetime:
        return _truncate(ensure_utc(self.clock()))

    def _next_timestamp(self, previous: datetime) -> datetime:
        """A mutation timestamp strictly after `previous`, even if the clock has not moved."""
        return max(self._now(), previous + STORE_RESOLUTION)

    async def create(self, title: str, description: Optional[str], due_date: Optional[datetime]) -> TaskInDB:
        log = logger.bind(service="TaskManager")
        if not title or not title.strip():
            raise InvalidInputError("Title is required")
        if due_date is None:
            raise InvalidInputError("Due date is required")

        now = self._now()
        task = await self.repository.create({
            "title": title,
            "description": description or "",
            "due_date": ensure_utc(due_date),
            "is_completed": False,
            "created_at": now,
            "updated_at": now,
        })
        log.bind(task_id=task.id).info("Task created.")
        return task

    async def get(self, task_id: int) -> TaskInDB:
        task = await self.repository.get_by_id(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    async def list(self, limit: int, offset: int) -> Tuple[List[TaskInDB], int]:
        """One page, newest-created first, plus the total number of tasks."""
        if limit < 0 or offset < 0:
            raise InvalidInputError("limit and offset must be non-negative")
        total = await self.repository.count()
        if limit == 0:
            return [], total
        tasks = await self.repository.list_page(limit=limit, offset=offset)
        logger.bind(service="TaskManager").debug(f"Listed {len(tasks)} of {total} tasks (limit={limit}, offset={offset}).")
        return tasks, total

    async def update(self, task_id: int, changes: TaskUpdateInternal) -> TaskInDB:
        """Applies the fields present in `changes`; absent fields stay as they are.

        A present description of "" or null clears it. Title and due date can
        be replaced but never cleared.
        """
        provided = changes.model_fields_set
        if "title" in provided and (changes.title is None or not changes.title.strip()):
            raise InvalidInputError("Title cannot be empty")
        if "due_date" in provided and changes.due_date is None:
            raise InvalidInputError("Due date cannot be removed")

        existing = await self.get(task_id)
        merged = existing.model_copy(update={
            **({"title": changes.title} if "title" in provided else {}),
            **({"description": changes.description or ""} if "description" in provided else {}),
            **({"due_date": changes.due_date} if "due_date" in provided else {}),
            "updated_at": self._next_timestamp(existing.updated_at),
        })

        if not await self.repository.replace_fields(merged):
            # Deleted between the read and the write
            raise NotFoundError(task_id)
        logger.bind(service="TaskManager", task_id=task_id).info(f"Task updated (fields: {sorted(provided) or 'none'}).")
        return merged

    async def mark_complete(self, task_id: int) -> None:
        existing = await self.get(task_id)
        if not await self.repository.mark_complete(task_id, updated_at=self._next_timestamp(existing.updated_at)):
            raise NotFoundError(task_id)
        logger.bind(service="TaskManager", task_id=task_id).info("Task marked complete.")

    async def delete(self, task_id: int) -> None:
        if not await self.repository.delete(task_id):
            raise NotFoundError(task_id)

    async def due_between(self, start: datetime, end: datetime) -> List[TaskInDB]:
        """Incomplete tasks due in [start, end], ordered by due date."""
        start, end = ensure_utc(start), ensure_utc(end)
        if start > end:
            return []
        return await self.repository.list_due_between(start, end)

def get_task_manager(request: Request) -> TaskManager:
    """FastAPI dependency: the manager wired at startup."""
    return request.app.state.task_manager
