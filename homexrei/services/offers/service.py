"""
Purchase offers on sale listings.

The offer, its in-app message and the outbox email are written in one
transaction; the email is delivered afterwards and may fail on its own.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session as DBSession

from homexrei.core.config import settings
from homexrei.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from homexrei.models.deal import Deal
from homexrei.models.message import Message
from homexrei.models.offer import Offer
from homexrei.models.user import User
from homexrei.schemas.offers import OfferCreate
from homexrei.services.notifications.service import NotificationService
from homexrei.utils.currency import format_usd

logger = logging.getLogger(__name__)


class OfferService:
    def __init__(self, db: DBSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def get_offer(self, offer_id: str) -> Offer:
        offer = self.db.query(Offer).filter(Offer.id == offer_id).one_or_none()
        if not offer:
            raise NotFoundError("Offer not found")
        return offer

    def create_offer(self, user: User, deal_id: str, data: OfferCreate) -> Offer:
        deal = self.db.query(Deal).filter(Deal.id == deal_id).one_or_none()
        if not deal:
            raise NotFoundError("Deal not found")
        if deal.deal_type != "sale":
            raise ValidationError("Offers can only be made on properties for sale")
        if deal.user_email == user.email:
            raise ValidationError("You cannot make an offer on your own listing")

        try:
            offer = Offer(
                deal_id=deal.id,
                buyer_email=user.email,
                seller_email=deal.user_email,
                property_address=deal.location,
                status="pending",
                **data.model_dump(),
            )
            self.db.add(offer)
            self.db.flush()

            subject = f"New Purchase Offer - {deal.location or deal.title}"
            body = build_offer_email(deal, offer)
            self.db.add(
                Message(
                    sender_email=user.email,
                    sender_name=data.buyer_name,
                    recipient_email=deal.user_email,
                    subject=subject,
                    content=body,
                    thread_id=f"offer_{offer.id}",
                    reference_type="deal",
                    reference_id=deal.id,
                )
            )
            outbox = self.notifications.enqueue(deal.user_email, subject, body, "offer", offer.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("offer_created", extra={"offer_id": offer.id, "deal_id": deal.id, "user_id": user.id})
        self.notifications.dispatch([outbox.id])
        return offer

    def respond(self, user: User, offer_id: str, status: str, message: str | None = None) -> Offer:
        offer = self.get_offer(offer_id)
        if offer.seller_email != user.email and not user.is_admin:
            raise AuthorizationError("Only the seller can respond to this offer")
        if offer.status != "pending":
            raise ConflictError("Offer already answered", {"status": offer.status})

        try:
            offer.status = status
            offer.responded_at = datetime.now(timezone.utc)
            self.db.add(offer)
            subject = f"Your offer was {status} - {offer.property_address or 'property'}"
            body = (
                f"The seller has {status} your offer of {format_usd(offer.offer_amount)}.\n"
                + (f"\nMessage from the seller:\n{message}\n" if message else "")
                + f"\nView the offer in your dashboard:\n{settings.public_app_url}/dashboard\n"
            )
            outbox = self.notifications.enqueue(offer.buyer_email, subject, body, "offer", offer.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("offer_answered", extra={"offer_id": offer.id, "user_id": user.id})
        self.notifications.dispatch([outbox.id])
        return offer


def build_offer_email(deal: Deal, offer: Offer) -> str:
    contingencies = []
    if offer.inspection_contingency:
        contingencies.append(f"- Inspection ({offer.inspection_period_days or 10} days)")
    if offer.appraisal_contingency:
        contingencies.append("- Appraisal")
    if offer.financing_contingency:
        contingencies.append("- Financing")
    contingencies.extend(f"- {c}" for c in (offer.contingencies or []))

    lines = [
        "You have received a new purchase offer for your property!",
        "",
        f"PROPERTY: {deal.title}",
        f"ADDRESS: {deal.location or '-'}",
        f"OFFER AMOUNT: {format_usd(offer.offer_amount)}",
        f"BUYER: {offer.buyer_name}",
        "",
        "OFFER DETAILS:",
        f"- Financing Type: {offer.financing_type.replace('_', ' ')}",
        f"- Down Payment: {offer.down_payment_percent:g}%",
        f"- Earnest Money: {format_usd(offer.earnest_money_deposit or 0)}",
    ]
    if offer.closing_date:
        lines.append(f"- Proposed Closing: {offer.closing_date:%B %d, %Y}")
    if offer.expiration_date:
        lines.append(f"- Offer Expires: {offer.expiration_date:%B %d, %Y}")
    lines += ["", "CONTINGENCIES:", *(contingencies or ["- None"])]
    if offer.additional_terms:
        lines += ["", "ADDITIONAL TERMS:", offer.additional_terms]
    lines += [
        "",
        "Review and respond to this offer in your dashboard:",
        f"{settings.public_app_url}/dashboard",
        "",
        "---",
        "This is an automated message from HomeXREI.",
    ]
    return "\n".join(lines)
