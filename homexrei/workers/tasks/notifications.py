"""
Celery tasks: deliver outbox notifications, sweep the ones left pending.
"""
import logging

from homexrei.core.celery_app import celery_app
from homexrei.core.config import settings
from homexrei.db.session import SessionLocal
from homexrei.services.notifications.service import STATUS_PENDING, NotificationService

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="homexrei.workers.tasks.notifications.send_notification",
    max_retries=settings.notification_max_attempts,
)
def send_notification(self, outbox_id: str) -> str:
    db = SessionLocal()
    try:
        status = NotificationService(db).deliver(outbox_id)
    finally:
        db.close()
    if status == STATUS_PENDING:
        countdown = settings.notification_retry_delay * (2 ** self.request.retries)
        raise self.retry(countdown=countdown)
    return status


@celery_app.task(name="homexrei.workers.tasks.notifications.redispatch_stale_notifications")
def redispatch_stale_notifications() -> dict:
    """Re-queue outbox rows still pending after notification_stale_minutes."""
    db = SessionLocal()
    try:
        ids = NotificationService(db).stale_pending_ids()
    finally:
        db.close()
    queued = NotificationService.dispatch(ids)
    if ids:
        logger.info("stale_notifications_redispatched", extra={"amount": queued})
    return {"found": len(ids), "queued": queued}
