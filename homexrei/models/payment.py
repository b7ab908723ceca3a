"""
ProcessedPayment: one row per reconciled provider payment.
provider_ref is unique, so a checkout session or payment intent is applied at most once.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Integer, String

from homexrei.db.base import Base


class ProcessedPayment(Base):
    __tablename__ = "processed_payments"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    provider_ref = Column(String, unique=True, nullable=False)  # cs_... / pi_...
    user_id = Column(String, nullable=False, index=True)
    payment_type = Column(String, nullable=False)  # credits / invoice
    amount_cents = Column(Integer, nullable=True)
    source = Column(String, nullable=False, default="verify")  # verify / confirm / webhook
    result = Column(JSON, nullable=False, default=dict)  # payload returned to the first caller
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
