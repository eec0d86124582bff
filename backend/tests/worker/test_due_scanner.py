# tests/worker/test_due_scanner.py
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from taskminder.core.errors import UnavailableError
from taskminder.modules.tasks.models import Reminder
from taskminder.worker.due_scanner import DueTaskScanner, LogReminderSink, ScannerState

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)

class RecordingSink:
    def __init__(self, fail_for=()):
        self.reminders = []
        self.fail_for = set(fail_for)

    async def emit(self, reminder: Reminder) -> None:
        if reminder.task_id in self.fail_for:
            raise RuntimeError("sink down")
        self.reminders.append(reminder)

def _scanner(manager, sink, **kwargs):
    kwargs.setdefault("clock", lambda: NOW)
    return DueTaskScanner(manager, sink, **kwargs)

async def test_scan_once_emits_due_tasks_and_repeats_next_scan(task_manager):
    due = await task_manager.create("Pay rent", "", NOW + timedelta(minutes=2))
    await task_manager.create("Later", "", NOW + timedelta(hours=1))
    sink = RecordingSink()
    scanner = _scanner(task_manager, sink, lookahead=timedelta(minutes=5))

    assert await scanner.scan_once() == 1
    assert await scanner.scan_once() == 1
    assert [r.task_id for r in sink.reminders] == [due.id, due.id]
    assert sink.reminders[0] == Reminder(task_id=due.id, title="Pay rent", due_date=due.due_date)

async def test_scan_once_skips_completed_tasks(task_manager):
    task = await task_manager.create("Pay rent", "", NOW + timedelta(minutes=2))
    await task_manager.mark_complete(task.id)
    sink = RecordingSink()
    assert await _scanner(task_manager, sink).scan_once() == 0
    assert sink.reminders == []

async def test_scan_once_survives_store_errors(task_manager):
    task_manager.due_between = AsyncMock(side_effect=UnavailableError("down"))
    sink = RecordingSink()
    assert await _scanner(task_manager, sink).scan_once() == 0
    assert sink.reminders == []

async def test_sink_failure_does_not_stop_remaining_reminders(task_manager):
    first = await task_manager.create("First", "", NOW + timedelta(minutes=1))
    second = await task_manager.create("Second", "", NOW + timedelta(minutes=2))
    sink = RecordingSink(fail_for={first.id})
    assert await _scanner(task_manager, sink).scan_once() == 1
    assert [r.task_id for r in sink.reminders] == [second.id]

async def test_log_sink_formats_reminder():
    from loguru import logger

    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="INFO")
    try:
        await LogReminderSink().emit(Reminder(task_id=7, title="Pay rent", due_date=NOW))
    finally:
        logger.remove(handler_id)
    assert "Reminder: Task 7 (Pay rent) is due at 2026-01-10T12:00:00+00:00" in messages

async def test_rejects_non_positive_interval(task_manager):
    with pytest.raises(ValueError):
        DueTaskScanner(task_manager, poll_interval=timedelta(0))
    with pytest.raises(ValueError):
        DueTaskScanner(task_manager, lookahead=timedelta(seconds=-1))

async def test_run_scans_each_tick_until_stopped(task_manager):
    await task_manager.create("Pay rent", "", NOW + timedelta(minutes=2))
    sink = RecordingSink()
    scanner = _scanner(task_manager, sink, poll_interval=timedelta(milliseconds=10))
    assert scanner.state == ScannerState.IDLE

    runner = asyncio.create_task(scanner.run())
    for _ in range(200):
        if len(sink.reminders) >= 2:
            break
        await asyncio.sleep(0.01)
    scanner.stop()
    await asyncio.wait_for(runner, timeout=1)

    assert len(sink.reminders) >= 2
    assert scanner.state == ScannerState.STOPPED

async def test_stop_while_idle_ends_without_scanning(task_manager):
    task_manager.due_between = AsyncMock(return_value=[])
    scanner = _scanner(task_manager, RecordingSink(), poll_interval=timedelta(hours=1))
    runner = asyncio.create_task(scanner.run())
    await asyncio.sleep(0)
    assert scanner.state == ScannerState.IDLE

    scanner.stop()
    await asyncio.wait_for(runner, timeout=1)
    assert scanner.state == ScannerState.STOPPED
    task_manager.due_between.assert_not_called()

async def test_stop_before_run_returns_immediately(task_manager):
    scanner = _scanner(task_manager, RecordingSink(), poll_interval=timedelta(hours=1))
    scanner.stop()
    await asyncio.wait_for(scanner.run(), timeout=1)
    assert scanner.state == ScannerState.STOPPED

async def test_scan_in_progress_finishes_before_stop(task_manager):
    release = asyncio.Event()
    started = asyncio.Event()

    async def slow_due_between(start, end):
        started.set()
        await release.wait()
        return []

    task_manager.due_between = slow_due_between
    scanner = _scanner(task_manager, RecordingSink(), poll_interval=timedelta(milliseconds=5))
    runner = asyncio.create_task(scanner.run())
    await asyncio.wait_for(started.wait(), timeout=1)
    assert scanner.state == ScannerState.SCANNING

    scanner.stop()
    await asyncio.sleep(0.02)
    assert not runner.done()
    release.set()
    await asyncio.wait_for(runner, timeout=1)
    assert scanner.state == ScannerState.STOPPED

async def test_cancelling_run_leaves_scanner_stopped(task_manager):
    scanner = _scanner(task_manager, RecordingSink(), poll_interval=timedelta(hours=1))
    runner = asyncio.create_task(scanner.run())
    await asyncio.sleep(0)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner
    assert scanner.state == ScannerState.STOPPED
