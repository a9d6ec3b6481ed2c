"""Celery application configuration."""

from celery import Celery

from traffic_flower.config import get_settings

settings = get_settings()

app = Celery(
    "traffic_flower",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["traffic_flower.tasks.broadcast"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30,
    task_soft_time_limit=20,
    beat_schedule={
        "broadcast-traffic-updates": {
            "task": "traffic_flower.tasks.broadcast.broadcast_traffic_updates",
            "schedule": settings.broadcast_interval_seconds,
            # A late tick is worthless; the next one supersedes it
            "options": {"expires": settings.broadcast_interval_seconds},
        },
    },
)
