"""
PaymentService: Stripe checkout / payment intents and their reconciliation.

Responsibilities:
- Create checkout sessions and payment intents (no local state changes)
- Verify a session or intent and apply it exactly once: credits to the
  ledger, or lead-charge invoices pending -> paid
- Apply the same reconciliation from Stripe webhooks
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from homexrei.core.config import settings
from homexrei.core.errors import (
    AuthorizationError,
    NotFoundError,
    PaymentNotCompletedError,
    SessionOwnershipError,
    ValidationError,
)
from homexrei.models.lead_charge import LeadCharge
from homexrei.models.payment import ProcessedPayment
from homexrei.models.user import User
from homexrei.services.credits.service import CreditLedgerService
from homexrei.services.payments.provider import StripeGateway
from homexrei.utils.currency import (
    MIN_CHARGE_CENTS,
    Cents,
    cents_to_credits,
    dollars_to_cents,
    format_credits,
    to_decimal,
)
from homexrei.utils.metrics import (
    checkout_sessions_created_total,
    payments_duplicate_total,
    payments_not_completed_total,
    payments_reconciled_total,
)

logger = logging.getLogger(__name__)

PAYMENT_TYPE_CREDITS = "credits"
PAYMENT_TYPE_INVOICE = "invoice"
INVOICE_PAYMENT_METHOD = "stripe_checkout"


class PaymentService:
    def __init__(self, db: Session, gateway: StripeGateway | None = None):
        self.db = db
        self.gateway = gateway or StripeGateway()
        self.ledger = CreditLedgerService(db)

    # ------------------------------------------------------------------
    # Checkout creation
    # ------------------------------------------------------------------

    def create_checkout_session(
        self,
        user: User,
        amount_cents: int | None,
        invoice_ids: list[str] | None = None,
        origin: str | None = None,
    ) -> dict[str, str]:
        """Hosted checkout for a credit top-up, or for paying lead-charge invoices."""
        amount = self._validate_amount(amount_cents)
        origin = (origin or settings.public_app_url).rstrip("/")
        invoice_ids = list(dict.fromkeys(invoice_ids or []))

        metadata = {"user_id": user.id, "user_email": user.email}
        if invoice_ids:
            self._validate_invoices(user, invoice_ids, amount)
            count = len(invoice_ids)
            product = {
                "name": f"Lead Invoices Payment ({count} invoice{'s' if count > 1 else ''})",
                "description": "Payment for qualified leads received",
            }
            metadata["payment_type"] = PAYMENT_TYPE_INVOICE
            metadata["invoice_ids"] = json.dumps(invoice_ids)
            cancel_url = f"{origin}/ProviderBilling"
        else:
            credits = format_credits(cents_to_credits(amount))
            product = {
                "name": f"{credits} Video Generation Credits",
                "description": f"Purchase {credits} credits for AI video generation",
            }
            metadata["payment_type"] = PAYMENT_TYPE_CREDITS
            metadata["credits_to_add"] = credits
            cancel_url = f"{origin}/Insights"

        session = self.gateway.create_checkout_session(
            line_items=[
                {
                    "price_data": {
                        "currency": settings.stripe_currency,
                        "product_data": product,
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                }
            ],
            success_url=f"{origin}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=cancel_url,
            metadata=metadata,
            customer_email=user.email,
        )
        checkout_sessions_created_total.labels(payment_type=metadata["payment_type"]).inc()
        logger.info(
            "checkout_session_created",
            extra={
                "user_id": user.id,
                "session_id": session["id"],
                "payment_type": metadata["payment_type"],
                "amount": amount,
                "invoice_ids": invoice_ids or None,
            },
        )
        return {"url": session["url"], "session_id": session["id"]}

    def create_payment_intent(self, user: User, amount_cents: int | None) -> dict[str, str]:
        """Embedded card payment for a credit top-up."""
        amount = self._validate_amount(amount_cents)
        intent = self.gateway.create_payment_intent(
            amount=amount,
            currency=settings.stripe_currency,
            metadata={
                "user_id": user.id,
                "user_email": user.email,
                "payment_type": PAYMENT_TYPE_CREDITS,
                "credits_to_add": format_credits(cents_to_credits(amount)),
            },
        )
        checkout_sessions_created_total.labels(payment_type=PAYMENT_TYPE_CREDITS).inc()
        logger.info("payment_intent_created", extra={"user_id": user.id, "payment_ref": intent["id"], "amount": amount})
        return {"client_secret": intent["client_secret"]}

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify_checkout_session(self, user: User, session_id: str | None) -> dict[str, Any]:
        if not session_id:
            raise ValidationError("Session ID required")

        replay = self._replay_if_processed(user, session_id, source="verify")
        if replay is not None:
            return replay

        session = self.gateway.retrieve_session(session_id)
        metadata = _metadata(session)
        status = session.get("payment_status")
        logger.info(
            "checkout_session_retrieved",
            extra={"session_id": session_id, "payment_type": metadata.get("payment_type"), "payment_status": status},
        )
        if status != "paid":
            payments_not_completed_total.inc()
            raise PaymentNotCompletedError(status)

        if metadata.get("user_id") != user.id:
            logger.error(
                "checkout_session_user_mismatch",
                extra={"session_id": session_id, "user_id": user.id},
            )
            raise SessionOwnershipError()

        return self._reconcile(
            provider_ref=session_id,
            user_id=user.id,
            metadata=metadata,
            amount_cents=session.get("amount_total"),
            source="verify",
        )

    def confirm_payment_intent(self, user: User, payment_intent_id: str | None) -> dict[str, Any]:
        if not payment_intent_id:
            raise ValidationError("Payment intent ID required")

        replay = self._replay_if_processed(user, payment_intent_id, source="confirm")
        if replay is not None:
            return replay

        intent = self.gateway.retrieve_payment_intent(payment_intent_id)
        status = intent.get("status")
        if status != "succeeded":
            payments_not_completed_total.inc()
            raise PaymentNotCompletedError(status)

        metadata = _metadata(intent)
        if metadata.get("user_id") != user.id:
            logger.error(
                "payment_intent_user_mismatch",
                extra={"payment_ref": payment_intent_id, "user_id": user.id},
            )
            raise SessionOwnershipError("Payment does not belong to current user")

        # Credits follow the charged amount, not metadata
        metadata = {**metadata, "payment_type": PAYMENT_TYPE_CREDITS}
        metadata.pop("credits_to_add", None)
        return self._reconcile(
            provider_ref=payment_intent_id,
            user_id=user.id,
            metadata=metadata,
            amount_cents=intent.get("amount"),
            source="confirm",
        )

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    def handle_webhook(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """
        Stripe push confirmation. Shares provider refs with verify/confirm,
        so whichever path arrives second replays the stored result.
        """
        event = self.gateway.construct_event(payload, signature)
        event_type = event["type"]
        obj = event["data"]["object"]
        metadata = _metadata(obj)
        user_id = metadata.get("user_id")

        if event_type == "checkout.session.completed" and obj.get("payment_status") == "paid" and user_id:
            result = self._reconcile(
                provider_ref=obj["id"],
                user_id=user_id,
                metadata=metadata,
                amount_cents=obj.get("amount_total"),
                source="webhook",
            )
            return {"received": True, "handled": True, "already_processed": result["already_processed"]}

        if event_type == "payment_intent.succeeded" and user_id:
            metadata = {**metadata, "payment_type": PAYMENT_TYPE_CREDITS}
            metadata.pop("credits_to_add", None)
            result = self._reconcile(
                provider_ref=obj["id"],
                user_id=user_id,
                metadata=metadata,
                amount_cents=obj.get("amount"),
                source="webhook",
            )
            return {"received": True, "handled": True, "already_processed": result["already_processed"]}

        logger.info("stripe_webhook_ignored", extra={"event_type": event_type})
        return {"received": True, "handled": False}

    # ------------------------------------------------------------------
    # Reconciliation (exactly once per provider ref)
    # ------------------------------------------------------------------

    def get_processed(self, provider_ref: str) -> ProcessedPayment | None:
        return (
            self.db.query(ProcessedPayment)
            .filter(ProcessedPayment.provider_ref == provider_ref)
            .one_or_none()
        )

    def _replay_if_processed(self, user: User, provider_ref: str, source: str) -> dict[str, Any] | None:
        existing = self.get_processed(provider_ref)
        if existing is None:
            return None
        if existing.user_id != user.id:
            raise SessionOwnershipError()
        return self._replay(existing, source)

    def _replay(self, record: ProcessedPayment, source: str) -> dict[str, Any]:
        payments_duplicate_total.labels(source=source).inc()
        logger.info(
            "payment_already_processed",
            extra={"payment_ref": record.provider_ref, "user_id": record.user_id, "payment_type": record.payment_type},
        )
        return {**(record.result or {}), "already_processed": True}

    def _reconcile(
        self,
        provider_ref: str,
        user_id: str,
        metadata: dict[str, str],
        amount_cents: int | None,
        source: str,
    ) -> dict[str, Any]:
        payment_type = metadata.get("payment_type") or PAYMENT_TYPE_CREDITS
        record = ProcessedPayment(
            provider_ref=provider_ref,
            user_id=user_id,
            payment_type=payment_type,
            amount_cents=amount_cents,
            source=source,
            result={},
        )
        # Claim the ref first: a concurrent duplicate fails here, before any balance or invoice is touched
        try:
            self.db.add(record)
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.warning("payment_duplicate", extra={"payment_ref": provider_ref, "user_id": user_id})
            existing = self.get_processed(provider_ref)
            if existing is None:
                raise
            return self._replay(existing, source)

        try:
            if payment_type == PAYMENT_TYPE_INVOICE:
                result = self._apply_invoices(metadata)
            else:
                result = self._apply_credits(user_id, provider_ref, metadata, amount_cents)
            record.result = result
            self.db.add(record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        payments_reconciled_total.labels(payment_type=payment_type, source=source).inc()
        logger.info(
            "payment_reconciled",
            extra={
                "payment_ref": provider_ref,
                "user_id": user_id,
                "payment_type": payment_type,
                "credits": result.get("credits_added"),
                "new_balance": result.get("new_balance"),
            },
        )
        return {**result, "already_processed": False}

    def _apply_credits(self, user_id: str, provider_ref: str, metadata: dict[str, str], amount_cents: int | None) -> dict[str, Any]:
        raw = metadata.get("credits_to_add")
        if raw:
            try:
                credits = to_decimal(raw)
            except ArithmeticError:
                raise ValidationError("Invalid credits_to_add in payment metadata")
        elif amount_cents:
            credits = cents_to_credits(Cents(int(amount_cents)))
        else:
            raise ValidationError("Payment carries no credit amount")

        new_balance = self.ledger.credit(user_id, credits, reference=provider_ref, reason="stripe_purchase")
        return {
            "success": True,
            "payment_type": PAYMENT_TYPE_CREDITS,
            "credits_added": float(credits),
            "new_balance": float(new_balance),
            "invoices_paid": 0,
            "message": "Credits successfully added to your account!",
        }

    def _apply_invoices(self, metadata: dict[str, str]) -> dict[str, Any]:
        try:
            invoice_ids = json.loads(metadata.get("invoice_ids") or "[]")
        except ValueError:
            raise ValidationError("Invalid invoice_ids in payment metadata")

        now = datetime.now(timezone.utc)
        transitioned = 0
        for invoice_id in invoice_ids:
            # Only pending -> paid; an already-paid invoice keeps its first payment_date
            res = self.db.execute(
                update(LeadCharge)
                .where(LeadCharge.id == invoice_id, LeadCharge.status == "pending")
                .values(status="paid", payment_date=now, payment_method=INVOICE_PAYMENT_METHOD)
                .execution_options(synchronize_session="fetch")
            )
            transitioned += res.rowcount
        self.db.flush()

        return {
            "success": True,
            "payment_type": PAYMENT_TYPE_INVOICE,
            "credits_added": 0,
            "new_balance": None,
            "invoices_paid": transitioned,
            "invoice_ids": invoice_ids,
            "message": "Invoices successfully paid!",
        }

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_amount(amount_cents: Any) -> Cents:
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
            raise ValidationError("Invalid amount")
        if amount_cents < MIN_CHARGE_CENTS:
            raise ValidationError("Invalid amount")
        return Cents(amount_cents)

    def _validate_invoices(self, user: User, invoice_ids: list[str], amount: Cents) -> None:
        charges = self.db.query(LeadCharge).filter(LeadCharge.id.in_(invoice_ids)).all()
        by_id = {c.id: c for c in charges}
        missing = [i for i in invoice_ids if i not in by_id]
        if missing:
            raise NotFoundError("Invoice not found", {"invoice_ids": missing})
        for charge in charges:
            if charge.provider_email != user.email and not user.is_admin:
                raise AuthorizationError("Invoice does not belong to current user")
            if charge.status != "pending":
                raise ValidationError(f"Invoice {charge.id} is not pending", {"status": charge.status})
        total = dollars_to_cents(sum((to_decimal(c.lead_amount) for c in charges), to_decimal(0)))
        if total != amount:
            raise ValidationError("Amount does not match invoice total", {"expected": total})


def _metadata(obj: Any) -> dict[str, str]:
    return dict(obj.get("metadata") or {})
