"""
Celery application configuration for background export processing.

Run a worker:  celery -A catalog_export.workers.celery_app worker -l info
Run the clock: celery -A catalog_export.workers.celery_app beat -l info
"""
from celery import Celery
from celery.schedules import crontab
from catalog_export.core.config import settings

# Create Celery app
celery_app = Celery(
    "catalog_export",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Export runs older than this are treated as abandoned anyway
    task_time_limit=settings.EXPORT_STALE_AFTER_MINUTES * 60,
    result_expires=3600,  # 1 hour
    beat_schedule={
        "daily-product-export": {
            "task": "workers.tasks.run_scheduled_export_task",
            "schedule": crontab(
                hour=settings.EXPORT_SCHEDULE_HOUR,
                minute=settings.EXPORT_SCHEDULE_MINUTE,
            ),
        },
    },
)

# Auto-discover tasks from workers.tasks module
celery_app.autodiscover_tasks(["catalog_export.workers"])
