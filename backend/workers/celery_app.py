"""
Celery Application — yield automation worker and beat schedule.

Run a worker with ``celery -A workers.celery_app worker -Q yield`` and the
scheduler with ``celery -A workers.celery_app beat``.
"""

from celery import Celery
from celery.schedules import crontab

from core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "yieldops",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["workers.yield_automation"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    # An hourly cycle must finish well inside the hour
    task_soft_time_limit=240,
    task_time_limit=300,
    result_expires=24 * 60 * 60,
    task_routes={
        "workers.yield_automation.*": {"queue": "yield"},
    },
    # ── Celery Beat Schedule ─────────────────────────────────────────
    # Fans out across AUTOMATION_PROPERTY_IDS via dispatch_properties.
    beat_schedule={
        "yield-cycle-hourly": {
            "task": "workers.yield_automation.dispatch_properties",
            "schedule": crontab(minute=0),
            "kwargs": {"task_name": "workers.yield_automation.run_yield_cycle"},
            "options": {"queue": "yield"},
        },
    },
)
