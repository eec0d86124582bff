# taskminder/worker/due_scanner.py

"""
Due-task scanner.

A small polling loop that wakes every `poll_interval`, asks the task manager
for incomplete tasks due within `lookahead`, and emits one reminder per task
to a sink. Nothing is remembered between wakes: a task is reported on every
tick until it is completed or its due date leaves the window.

Stop it with `stop()`; the signal is checked while idle, so a scan that is
already running finishes first.
"""

import asyncio
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Protocol

from loguru import logger

from taskminder.modules.tasks.models import Reminder
from taskminder.modules.tasks.services import TaskManager, utc_now

class ScannerState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    STOPPED = "stopped"

class ReminderSink(Protocol):
    async def emit(self, reminder: Reminder) -> None: ...

class LogReminderSink:
    """Writes reminders to the application log."""

    async def emit(self, reminder: Reminder) -> None:
        logger.bind(task_id=reminder.task_id).info(
            f"Reminder: Task {reminder.task_id} ({reminder.title}) is due at {reminder.due_date.isoformat()}"
        )

class DueTaskScanner:
    def __init__(
        self,
        manager: TaskManager,
        sink: Optional[ReminderSink] = None,
        *,
        poll_interval: timedelta = timedelta(minutes=1),
        lookahead: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utc_now,
    ):
        if poll_interval.total_seconds() <= 0:
            raise ValueError("poll_interval must be positive")
        if lookahead.total_seconds() < 0:
            raise ValueError("lookahead must not be negative")
        self.manager = manager
        self.sink = sink or LogReminderSink()
        self.poll_interval = poll_interval
        self.lookahead = lookahead
        self.clock = clock
        self._state = ScannerState.IDLE
        self._stop_event = asyncio.Event()

    @property
    def state(self) -> ScannerState:
        return self._state

    def stop(self) -> None:
        self._stop_event.set()

    async def scan_once(self) -> int:
        """Runs one query-and-emit cycle. Returns how many reminders were emitted."""
        start = self.clock()
        end = start + self.lookahead
        log = logger.bind(service="DueTaskScanner")
        log.debug(f"Scanning for tasks due between {start.isoformat()} and {end.isoformat()}")

        try:
            tasks = await self.manager.due_between(start, end)
        except Exception:
            log.exception("Error getting due tasks")
            return 0

        emitted = 0
        for task in tasks:
            try:
                await self.sink.emit(Reminder.from_task(task))
                emitted += 1
            except Exception:
                log.exception(f"Reminder sink failed for task {task.id}")
        if emitted:
            log.info(f"Emitted {emitted} reminder(s).")
        return emitted

    async def _wait_for_tick(self) -> bool:
        """Idle until the next tick. Returns False once stop has been requested."""
        if self._stop_event.is_set():
            return False
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval.total_seconds())
        except asyncio.TimeoutError:
            return True
        return False

    async def run(self) -> None:
        logger.info(
            f"Reminder scanner started (interval={self.poll_interval.total_seconds():.0f}s, "
            f"lookahead={self.lookahead.total_seconds():.0f}s)"
        )
        try:
            while True:
                self._state = ScannerState.IDLE
                if not await self._wait_for_tick():
                    break
                self._state = ScannerState.SCANNING
                await self.scan_once()
        finally:
            self._state = ScannerState.STOPPED
            logger.info("Reminder scanner stopped")
