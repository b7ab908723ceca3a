"""
Thin wrapper over the Stripe SDK.

Every response is converted to plain dicts and lists before it leaves the
gateway; current SDK objects are not dict subclasses.
"""
import logging
from typing import Any

import stripe

from homexrei.core.config import settings
from homexrei.core.errors import PaymentProviderNotConfiguredError, UpstreamServiceError, ValidationError
from homexrei.utils.metrics import stripe_request_duration_seconds

logger = logging.getLogger(__name__)


class StripeGateway:
    def __init__(self, secret_key: str | None = None, webhook_secret: str | None = None) -> None:
        self.secret_key = secret_key if secret_key is not None else settings.stripe_secret_key
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        self.api_version = settings.stripe_api_version

    def _options(self) -> dict[str, Any]:
        if not self.secret_key:
            raise PaymentProviderNotConfiguredError()
        return {"api_key": self.secret_key, "stripe_version": self.api_version}

    def _call(self, method: str, func, *args, **kwargs):
        try:
            with stripe_request_duration_seconds.labels(method=method).time():
                return to_plain(func(*args, **kwargs))
        except stripe.InvalidRequestError as e:
            logger.warning("stripe_invalid_request", extra={"error": str(e)})
            raise ValidationError(e.user_message or "Invalid payment request")
        except stripe.StripeError as e:
            logger.error("stripe_request_failed", extra={"error": str(e)})
            raise UpstreamServiceError("Payment provider error", details=e.user_message or str(e))

    def create_checkout_session(
        self,
        *,
        line_items: list[dict],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        customer_email: str | None,
        mode: str = "payment",
    ):
        options = self._options()
        return self._call(
            "checkout.session.create",
            stripe.checkout.Session.create,
            payment_method_types=["card"],
            line_items=line_items,
            mode=mode,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            customer_email=customer_email,
            **options,
        )

    def create_payment_intent(self, *, amount: int, currency: str, metadata: dict[str, str]):
        options = self._options()
        return self._call(
            "payment_intent.create",
            stripe.PaymentIntent.create,
            amount=amount,
            currency=currency,
            automatic_payment_methods={"enabled": True},
            metadata=metadata,
            **options,
        )

    def retrieve_session(self, session_id: str):
        options = self._options()
        return self._call("checkout.session.retrieve", stripe.checkout.Session.retrieve, session_id, **options)

    def retrieve_payment_intent(self, payment_intent_id: str):
        options = self._options()
        return self._call("payment_intent.retrieve", stripe.PaymentIntent.retrieve, payment_intent_id, **options)

    def construct_event(self, payload: bytes, signature: str | None):
        if not self.webhook_secret:
            raise PaymentProviderNotConfiguredError()
        if not signature:
            raise ValidationError("Missing Stripe-Signature header")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError:
            raise ValidationError("Invalid webhook payload")
        except stripe.SignatureVerificationError:
            logger.warning("stripe_webhook_bad_signature")
            raise ValidationError("Invalid webhook signature")
        return to_plain(event)


def to_plain(obj: Any) -> Any:
    """Recursively turn StripeObjects (and nested lists of them) into dicts."""
    if isinstance(obj, stripe.StripeObject):
        obj = obj.to_dict()
    if isinstance(obj, dict):
        return {key: to_plain(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [to_plain(item) for item in obj]
    return obj
