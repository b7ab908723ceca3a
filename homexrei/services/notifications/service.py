"""
Notification outbox.

enqueue() writes the email into notification_outbox inside the caller's
transaction; dispatch() hands ids to Celery after the caller committed.
Delivery problems never propagate to the operation that caused the email.
"""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session as DBSession

from homexrei.core.config import settings
from homexrei.models.notification import NotificationOutbox
from homexrei.services.notifications.email import EmailDeliveryError, EmailSender
from homexrei.utils.metrics import notifications_total

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"


class NotificationService:
    def __init__(self, db: DBSession, sender: EmailSender | None = None):
        self.db = db
        self.sender = sender

    def enqueue(
        self,
        recipient: str,
        subject: str,
        body: str,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> NotificationOutbox:
        item = NotificationOutbox(
            recipient=recipient,
            subject=subject,
            body=body,
            reference_type=reference_type,
            reference_id=reference_id,
            status=STATUS_PENDING,
            attempts=0,
        )
        self.db.add(item)
        self.db.flush()
        return item

    @staticmethod
    def dispatch(outbox_ids: list[str]) -> int:
        """Queue delivery tasks. Best effort: a broker outage leaves rows pending for the sweeper."""
        from homexrei.workers.tasks.notifications import send_notification

        queued = 0
        for outbox_id in outbox_ids:
            try:
                send_notification.delay(outbox_id)
                queued += 1
            except Exception:
                notifications_total.labels(status="dispatch_error").inc()
                logger.exception("notification_dispatch_failed", extra={"outbox_id": outbox_id})
        return queued

    def deliver(self, outbox_id: str) -> str:
        """
        One delivery attempt. Returns the resulting status:
        sent, pending (caller should retry), failed (attempts exhausted) or skipped.
        """
        item = self.db.query(NotificationOutbox).filter(NotificationOutbox.id == outbox_id).one_or_none()
        if not item or item.status != STATUS_PENDING:
            return "skipped"

        sender = self.sender or EmailSender()
        item.attempts = (item.attempts or 0) + 1
        try:
            sender.send(item.recipient, item.subject, item.body)
        except EmailDeliveryError as e:
            item.last_error = str(e)
            if item.attempts >= settings.notification_max_attempts:
                item.status = STATUS_FAILED
                notifications_total.labels(status="failed").inc()
                logger.error(
                    "notification_failed",
                    extra={"outbox_id": outbox_id, "attempt": item.attempts, "error": str(e)},
                )
            else:
                notifications_total.labels(status="retry").inc()
                logger.warning(
                    "notification_attempt_failed",
                    extra={"outbox_id": outbox_id, "attempt": item.attempts, "error": str(e)},
                )
            self.db.add(item)
            self.db.commit()
            return item.status

        item.status = STATUS_SENT
        item.sent_at = datetime.now(timezone.utc)
        item.last_error = None
        self.db.add(item)
        self.db.commit()
        notifications_total.labels(status="sent").inc()
        logger.info("notification_sent", extra={"outbox_id": outbox_id, "attempt": item.attempts})
        return STATUS_SENT

    def stale_pending_ids(self, older_than_minutes: int | None = None, limit: int = 200) -> list[str]:
        minutes = older_than_minutes if older_than_minutes is not None else settings.notification_stale_minutes
        cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=minutes)
        rows = (
            self.db.query(NotificationOutbox.id)
            .filter(
                NotificationOutbox.status == STATUS_PENDING,
                NotificationOutbox.created_at <= cutoff,
            )
            .order_by(NotificationOutbox.created_at)
            .limit(limit)
            .all()
        )
        return [r.id for r in rows]
