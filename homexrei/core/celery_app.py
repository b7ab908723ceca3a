"""
Celery application for outbox email delivery.
Workers consume the "notifications" queue; beat re-queues stale outbox rows.
"""
from celery import Celery
from celery.schedules import crontab

from homexrei.core.config import settings

celery_app = Celery(
    "homexrei",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["homexrei.workers.tasks.notifications"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Delivery is at-least-once; deliver() skips rows that are no longer pending
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="notifications",
    task_time_limit=120,
    result_expires=3600,
    broker_connection_retry_on_startup=True,
    beat_schedule={
        "redispatch-stale-notifications": {
            "task": "homexrei.workers.tasks.notifications.redispatch_stale_notifications",
            "schedule": crontab(minute="*/5"),
        },
    },
)
