"""Celery configuration and beat schedule"""

from celery import Celery
from celery.schedules import crontab

from ..config import settings

# Initialize Celery
celery_app = Celery(
    "marketfeed_tasks",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND
)

# Celery configuration
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,  # 1 hour
    task_soft_time_limit=3000,  # 50 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Periodic tasks schedule
celery_app.conf.beat_schedule = {
    'cleanup-expired-sessions': {
        'task': 'marketfeed.tasks.celery_tasks.cleanup_expired_sessions',
        'schedule': crontab(minute=0),  # Hourly
    },
    'pregenerate-daily-feeds': {
        'task': 'marketfeed.tasks.celery_tasks.pregenerate_daily_feeds',
        'schedule': crontab(hour=0, minute=5),  # Shortly after midnight
    },
    'update-system-metrics': {
        'task': 'marketfeed.tasks.celery_tasks.update_metrics_task',
        'schedule': crontab(minute='*/5'),  # Every 5 minutes
    },
}
