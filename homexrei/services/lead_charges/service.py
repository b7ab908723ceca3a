"""
Lead charges billed to service providers.

Contacting a provider writes the charge, an in-app message and the outbox
email in one transaction; the email is delivered afterwards.
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session as DBSession

from homexrei.core.config import settings
from homexrei.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from homexrei.models.lead_charge import LeadCharge
from homexrei.models.message import Message
from homexrei.models.user import User
from homexrei.schemas.lead_charges import ProviderContactRequest
from homexrei.services.notifications.service import NotificationService
from homexrei.utils.currency import to_decimal

logger = logging.getLogger(__name__)


class LeadChargeService:
    def __init__(self, db: DBSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def contact_provider(self, user: User, data: ProviderContactRequest) -> LeadCharge:
        """Send a project request to a provider and bill them for the lead."""
        if data.provider_email.lower() == user.email.lower():
            raise ValidationError("You cannot send a project request to yourself")

        try:
            charge = self.create_lead_charge(
                data.provider_email,
                provider_name=data.provider_name,
                project_title=data.project_title,
                property_address=data.property_address,
            )
            body = build_project_request_email(user, data)
            self.db.add(
                Message(
                    sender_email=user.email,
                    sender_name=user.full_name,
                    recipient_email=data.provider_email,
                    subject=f"New Project Request: {data.project_title}",
                    content=body,
                    thread_id=f"project_{charge.id}",
                    reference_type="lead_charge",
                    reference_id=charge.id,
                )
            )
            outbox = self.notifications.enqueue(
                data.provider_email,
                f"New Project Request - {data.project_title}",
                body,
                "lead_charge",
                charge.id,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("provider_contacted", extra={"user_id": user.id})
        self.notifications.dispatch([outbox.id])
        return charge

    def create_lead_charge(
        self,
        provider_email: str,
        provider_name: str | None = None,
        project_title: str | None = None,
        property_address: str | None = None,
        amount=None,
    ) -> LeadCharge:
        """Bill a provider for a qualified lead. Flushes; the caller commits."""
        lead_amount = to_decimal(amount if amount is not None else settings.default_lead_fee)
        if lead_amount <= 0:
            raise ValidationError("Lead amount must be positive")
        charge = LeadCharge(
            provider_email=provider_email,
            provider_name=provider_name,
            project_title=project_title,
            property_address=property_address,
            lead_amount=lead_amount,
            status="pending",
            lead_quality="qualified",
        )
        self.db.add(charge)
        self.db.flush()
        logger.info("lead_charge_created", extra={"amount": str(lead_amount), "user_id": provider_email})
        return charge

    def list_for_provider(self, provider_email: str) -> list[LeadCharge]:
        return (
            self.db.query(LeadCharge)
            .filter(LeadCharge.provider_email == provider_email)
            .order_by(LeadCharge.created_at.desc())
            .all()
        )

    def summary(self, provider_email: str) -> dict:
        charges = self.list_for_provider(provider_email)
        pending = [c for c in charges if c.status == "pending"]
        paid = [c for c in charges if c.status == "paid"]
        return {
            "pending_count": len(pending),
            "pending_total": float(sum((to_decimal(c.lead_amount) for c in pending), Decimal("0"))),
            "paid_count": len(paid),
            "paid_total": float(sum((to_decimal(c.lead_amount) for c in paid), Decimal("0"))),
            "disputed_count": sum(1 for c in charges if c.status == "disputed"),
        }

    def dispute(self, user: User, charge_id: str) -> LeadCharge:
        charge = self.db.query(LeadCharge).filter(LeadCharge.id == charge_id).one_or_none()
        if not charge:
            raise NotFoundError("Invoice not found")
        if charge.provider_email != user.email and not user.is_admin:
            raise AuthorizationError("Invoice does not belong to current user")
        if charge.status != "pending":
            raise ConflictError("Only pending invoices can be disputed", {"status": charge.status})
        charge.status = "disputed"
        self.db.add(charge)
        self.db.commit()
        logger.info("lead_charge_disputed", extra={"user_id": user.id})
        return charge


def build_project_request_email(user: User, data: ProviderContactRequest) -> str:
    lines = [
        f"Hello {data.provider_name or 'there'},",
        "",
        "You have received a new project request on HomeXREI.",
        "",
        f"PROJECT: {data.project_title}",
        f"ADDRESS: {data.property_address or '-'}",
        f"FROM: {user.full_name or user.email} ({user.email})",
    ]
    if data.message:
        lines += ["", "MESSAGE:", data.message]
    lines += [
        "",
        "Reply from your dashboard:",
        f"{settings.public_app_url}/dashboard",
        "",
        "---",
        "This is an automated message from HomeXREI.",
    ]
    return "\n".join(lines)
