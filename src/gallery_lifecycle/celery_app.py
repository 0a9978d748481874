"""Celery application and beat schedule for the lifecycle jobs.

Run a worker with beat:
    celery -A gallery_lifecycle.celery_app worker --beat --loglevel=info
"""

from celery import Celery
from celery.schedules import crontab

from .config import get_settings
from .observability import configure_logging

settings = get_settings()

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

celery_app = Celery(
    "gallery_lifecycle",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "gallery_lifecycle.retention.tasks",
        "gallery_lifecycle.accounts.tasks",
    ],
)

celery_app.conf.update(
    timezone="UTC",
    enable_utc=True,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    worker_hijack_root_logger=False,
)

celery_app.conf.beat_schedule = {
    "scheduled-deletion-daily": {
        "task": "lifecycle.scheduled_deletion",
        "schedule": crontab(hour=2, minute=0),  # 02:00 UTC
        "options": {
            "expires": 3600,
        },
    },
}
