"""Celery application configuration."""

from celery import Celery

from src.config import get_settings

settings = get_settings()

app = Celery(
    "todo_api",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["src.tasks.cleanup"],
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
        "purge-expired-auth-records": {
            "task": "src.tasks.cleanup.purge_expired_auth_records",
            "schedule": 3600.0,  # hourly
        },
    },
)
