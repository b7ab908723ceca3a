"""
Transactional email through Resend.
"""
import logging

import resend

from homexrei.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


class EmailSender:
    def __init__(self, api_key: str | None = None, sender: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.sender = sender or settings.email_from

    def send(self, to: str, subject: str, body: str) -> str | None:
        """Send a plain-text email. Returns the Resend message id."""
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY not set")
        resend.api_key = self.api_key
        try:
            sent = resend.Emails.send({"from": self.sender, "to": [to], "subject": subject, "text": body})
        except Exception as e:
            raise EmailDeliveryError(f"{type(e).__name__}: {e}") from e
        return sent.get("id") if isinstance(sent, dict) else getattr(sent, "id", None)
