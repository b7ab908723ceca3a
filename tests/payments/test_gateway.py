"""
StripeGateway against real SDK objects: responses reach PaymentService as
plain dicts, including nested metadata.
"""
from decimal import Decimal
from unittest.mock import patch

import pytest
import stripe

from homexrei.core.errors import PaymentNotCompletedError, PaymentProviderNotConfiguredError, ValidationError
from homexrei.services.credits.service import CreditLedgerService
from homexrei.services.payments.provider import StripeGateway, to_plain
from homexrei.services.payments.service import PaymentService


def _stripe_session(user, **kwargs):
    values = {
        "id": "cs_live_1",
        "object": "checkout.session",
        "payment_status": kwargs.get("payment_status", "paid"),
        "amount_total": 1000,
        "metadata": {"user_id": user.id, "payment_type": "credits", "credits_to_add": "10"},
    }
    return stripe.checkout.Session.construct_from(values, "sk_test_dummy")


def _balance(db, user):
    return CreditLedgerService(db).get_balance(user.id)


class TestToPlain:
    def test_nested_objects(self):
        event = stripe.Event.construct_from(
            {"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {"id": "cs_1", "metadata": {"a": "b"}}}},
            "sk_test_dummy",
        )
        plain = to_plain(event)
        assert type(plain) is dict
        assert type(plain["data"]["object"]["metadata"]) is dict
        assert plain["data"]["object"]["metadata"] == {"a": "b"}


class TestGatewayWithService:
    def test_verify_paid_session(self, db, user_factory):
        user = user_factory(credits=5)
        with patch("stripe.checkout.Session.retrieve", return_value=_stripe_session(user)) as retrieve:
            result = PaymentService(db, StripeGateway(secret_key="sk_test_dummy")).verify_checkout_session(user, "cs_live_1")

        assert retrieve.call_args.args[0] == "cs_live_1"
        assert result["success"] is True
        assert result["new_balance"] == 15
        assert _balance(db, user) == Decimal("15.00")

    def test_unpaid_session(self, db, user_factory):
        user = user_factory()
        with patch("stripe.checkout.Session.retrieve", return_value=_stripe_session(user, payment_status="unpaid")):
            with pytest.raises(PaymentNotCompletedError):
                PaymentService(db, StripeGateway(secret_key="sk_test_dummy")).verify_checkout_session(user, "cs_live_1")

    def test_webhook_event(self, db, user_factory):
        user = user_factory(credits=0)
        event = stripe.Event.construct_from(
            {
                "id": "evt_1",
                "type": "checkout.session.completed",
                "data": {"object": _stripe_session(user).to_dict()},
            },
            "sk_test_dummy",
        )
        gateway = StripeGateway(secret_key="sk_test_dummy", webhook_secret="whsec_dummy")
        with patch("stripe.Webhook.construct_event", return_value=event):
            result = PaymentService(db, gateway).handle_webhook(b"{}", "t=1,v1=sig")

        assert result == {"received": True, "handled": True, "already_processed": False}
        assert _balance(db, user) == Decimal("10.00")

    def test_not_configured(self):
        with pytest.raises(PaymentProviderNotConfiguredError):
            StripeGateway(secret_key="").retrieve_session("cs_1")

    def test_missing_signature(self):
        with pytest.raises(ValidationError):
            StripeGateway(secret_key="sk_test_dummy", webhook_secret="whsec_dummy").construct_event(b"{}", None)
