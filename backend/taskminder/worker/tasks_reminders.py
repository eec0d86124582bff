# taskminder/worker/tasks_reminders.py
import asyncio
from datetime import timedelta

from loguru import logger

from taskminder.core.config import settings
from taskminder.core.database import MongoDbContext
from taskminder.modules.tasks.repository import TaskRepository
from taskminder.modules.tasks.services import TaskManager
from taskminder.worker.celery_app import celery_app
from taskminder.worker.due_scanner import DueTaskScanner, LogReminderSink

async def _scan_due_tasks() -> int:
    async with MongoDbContext() as mongo:
        manager = TaskManager(TaskRepository(mongo.get_db()))
        scanner = DueTaskScanner(
            manager,
            LogReminderSink(),
            poll_interval=timedelta(seconds=settings.REMINDER_POLL_INTERVAL_SECONDS),
            lookahead=timedelta(seconds=settings.REMINDER_LOOKAHEAD_SECONDS),
        )
        return await scanner.scan_once()

@celery_app.task(name="reminders.scan_due_tasks", ignore_result=False, acks_late=True)
def scan_due_tasks_task() -> int:
    """
    One reminder scan per beat tick, for deployments that run the scanner
    out of the API process (REMINDER_SCANNER_ENABLED=false).
    """
    log = logger.bind(task="reminders.scan_due_tasks")
    log.info("Beat tick: scanning for due tasks...")
    emitted = asyncio.run(_scan_due_tasks())
    log.info(f"Scan finished, {emitted} reminder(s) emitted.")
    return emitted
