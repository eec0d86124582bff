# taskminder/worker/celery_app.py
from datetime import timedelta

from celery import Celery

from taskminder.core.config import settings

celery_app = Celery(
    "taskminder",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "taskminder.worker.tasks_reminders",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "scan-due-tasks": {
            "task": "reminders.scan_due_tasks",
            "schedule": timedelta(seconds=settings.REMINDER_POLL_INTERVAL_SECONDS)
        },
    }
)
