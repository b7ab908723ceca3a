import logging

from sqlalchemy.orm import Session as DBSession

from homexrei.core.config import settings
from homexrei.core.errors import ConflictError, NotFoundError, ValidationError
from homexrei.models.booking import Booking
from homexrei.models.deal import Deal
from homexrei.models.message import Message
from homexrei.models.user import User
from homexrei.schemas.bookings import BookingCreate
from homexrei.services.notifications.service import NotificationService
from homexrei.utils.currency import format_usd

logger = logging.getLogger(__name__)

BOOKABLE_DEAL_TYPE = "short_term_rent"
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")


class BookingService:
    """Nightly stays on short-term rental listings. Host is notified through the outbox."""

    def __init__(self, db: DBSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def create_booking(self, user: User, deal_id: str, data: BookingCreate) -> Booking:
        deal = self.db.query(Deal).filter(Deal.id == deal_id).one_or_none()
        if not deal:
            raise NotFoundError("Deal not found")
        if deal.deal_type != BOOKABLE_DEAL_TYPE:
            raise ValidationError("Only short-term rentals can be booked")
        if deal.user_email == user.email:
            raise ValidationError("You cannot book your own listing")

        overlapping = (
            self.db.query(Booking.id)
            .filter(
                Booking.deal_id == deal.id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.check_in < data.check_out,
                Booking.check_out > data.check_in,
            )
            .first()
        )
        if overlapping:
            raise ConflictError("Listing is already booked for these dates")

        nights = (data.check_out - data.check_in).days
        total = round(float(deal.price) * nights, 2)
        try:
            booking = Booking(
                deal_id=deal.id,
                guest_email=user.email,
                guest_name=data.guest_name or user.full_name,
                host_email=deal.user_email,
                check_in=data.check_in,
                check_out=data.check_out,
                guests=data.guests,
                nights=nights,
                total_price=total,
                notes=data.notes,
                status="pending",
            )
            self.db.add(booking)
            self.db.flush()

            subject = f"New Booking Request - {deal.title}"
            body = (
                f"You have a new booking request for {deal.title}.\n\n"
                f"GUEST: {booking.guest_name or user.email}\n"
                f"CHECK-IN: {data.check_in:%B %d, %Y}\n"
                f"CHECK-OUT: {data.check_out:%B %d, %Y}\n"
                f"NIGHTS: {nights}\n"
                f"GUESTS: {data.guests}\n"
                f"TOTAL: {format_usd(total)}\n"
                + (f"\nNOTES:\n{data.notes}\n" if data.notes else "")
                + f"\nManage your bookings at {settings.public_app_url}/dashboard\n"
            )
            self.db.add(
                Message(
                    sender_email=user.email,
                    sender_name=booking.guest_name,
                    recipient_email=deal.user_email,
                    subject=subject,
                    content=body,
                    thread_id=f"booking_{booking.id}",
                    reference_type="booking",
                    reference_id=booking.id,
                )
            )
            outbox = self.notifications.enqueue(deal.user_email, subject, body, "booking", booking.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("booking_created", extra={"booking_id": booking.id, "deal_id": deal.id, "user_id": user.id})
        self.notifications.dispatch([outbox.id])
        return booking
