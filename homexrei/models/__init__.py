from homexrei.models.booking import Booking
from homexrei.models.credit_ledger import CreditLedgerEntry
from homexrei.models.deal import Deal
from homexrei.models.insight import Insight
from homexrei.models.lead_charge import LeadCharge
from homexrei.models.message import Message
from homexrei.models.notification import NotificationOutbox
from homexrei.models.offer import Offer
from homexrei.models.payment import ProcessedPayment
from homexrei.models.user import User

__all__ = [
    "Booking",
    "CreditLedgerEntry",
    "Deal",
    "Insight",
    "LeadCharge",
    "Message",
    "NotificationOutbox",
    "Offer",
    "ProcessedPayment",
    "User",
]
