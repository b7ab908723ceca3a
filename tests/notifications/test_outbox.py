"""Tests for the notification outbox: delivery attempts and best-effort dispatch."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from homexrei.services.notifications.email import EmailDeliveryError, EmailSender
from homexrei.services.notifications.service import NotificationService

_real_dispatch = NotificationService.__dict__["dispatch"].__func__


def _enqueue(db, **kwargs):
    item = NotificationService(db).enqueue(
        kwargs.get("recipient", "seller@example.com"),
        kwargs.get("subject", "New Purchase Offer"),
        kwargs.get("body", "You have received a new purchase offer"),
        "offer",
        "offer-1",
    )
    db.commit()
    return item


class TestDeliver:
    def test_sent(self, db):
        item = _enqueue(db)
        sender = MagicMock()

        status = NotificationService(db, sender).deliver(item.id)

        assert status == "sent"
        sender.send.assert_called_once_with("seller@example.com", "New Purchase Offer", "You have received a new purchase offer")
        db.refresh(item)
        assert item.attempts == 1
        assert item.sent_at is not None

    def test_failed_attempt_stays_pending(self, db):
        item = _enqueue(db)
        sender = MagicMock()
        sender.send.side_effect = EmailDeliveryError("HTTP 503: unavailable")

        status = NotificationService(db, sender).deliver(item.id)

        assert status == "pending"
        db.refresh(item)
        assert item.last_error == "HTTP 503: unavailable"

    def test_gives_up_after_max_attempts(self, db):
        item = _enqueue(db)
        item.attempts = 4
        db.commit()
        sender = MagicMock()
        sender.send.side_effect = EmailDeliveryError("boom")

        assert NotificationService(db, sender).deliver(item.id) == "failed"

    def test_already_sent_skipped(self, db):
        item = _enqueue(db)
        item.status = "sent"
        db.commit()
        sender = MagicMock()
        assert NotificationService(db, sender).deliver(item.id) == "skipped"
        sender.send.assert_not_called()

    def test_stale_pending(self, db):
        old = _enqueue(db)
        old.created_at = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(hours=1)
        _enqueue(db)
        db.commit()
        assert NotificationService(db).stale_pending_ids(older_than_minutes=10) == [old.id]


class TestDispatch:
    def test_broker_failure_swallowed(self):
        with patch("homexrei.workers.tasks.notifications.send_notification.delay", side_effect=ConnectionError("redis down")):
            assert _real_dispatch(["a", "b"]) == 0

    def test_queues_each_id(self):
        with patch("homexrei.workers.tasks.notifications.send_notification.delay") as delay:
            assert _real_dispatch(["a", "b"]) == 2
        assert delay.call_count == 2


class TestEmailSender:
    def test_sends_plain_text(self):
        with patch("homexrei.services.notifications.email.resend.Emails.send", return_value={"id": "email_1"}) as send:
            assert EmailSender(api_key="re_test", sender="HomeXrei <n@homexrei.com>").send("a@example.com", "Hi", "Body") == "email_1"
        send.assert_called_once_with(
            {"from": "HomeXrei <n@homexrei.com>", "to": ["a@example.com"], "subject": "Hi", "text": "Body"}
        )

    def test_provider_error(self):
        with patch("homexrei.services.notifications.email.resend.Emails.send", side_effect=RuntimeError("422 invalid from")):
            with pytest.raises(EmailDeliveryError, match="invalid from"):
                EmailSender(api_key="re_test").send("a@example.com", "Hi", "Body")

    def test_not_configured(self):
        with pytest.raises(EmailDeliveryError):
            EmailSender(api_key="").send("a@example.com", "Hi", "Body")
