"""Celery application configuration."""

from celery import Celery

from tasktracker.config import get_settings

settings = get_settings()

app = Celery(
    "tasktracker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["tasktracker.tasks.reminders"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    task_soft_time_limit=240,  # 4 minutes soft limit
    beat_schedule={
        "scan-due-reminders": {
            "task": "tasktracker.tasks.reminders.scan_due_reminders",
            "schedule": float(settings.scan_interval_seconds),
        },
    },
)
