from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, Integer, String, Text

from homexrei.db.base import Base

OFFER_STATUSES = ("pending", "accepted", "rejected", "countered")


class Offer(Base):
    __tablename__ = "offers"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    deal_id = Column(String, nullable=False, index=True)
    buyer_email = Column(String, nullable=False, index=True)
    buyer_name = Column(String, nullable=False)
    buyer_phone = Column(String, nullable=True)
    seller_email = Column(String, nullable=False, index=True)
    property_address = Column(String, nullable=True)
    offer_amount = Column(Float, nullable=False)
    earnest_money_deposit = Column(Float, nullable=False, default=0)
    down_payment_percent = Column(Float, nullable=False, default=0)
    financing_type = Column(String, nullable=False, default="cash")
    closing_date = Column(Date, nullable=True)
    expiration_date = Column(Date, nullable=True)
    inspection_contingency = Column(Boolean, nullable=False, default=False)
    inspection_period_days = Column(Integer, nullable=True)
    appraisal_contingency = Column(Boolean, nullable=False, default=False)
    financing_contingency = Column(Boolean, nullable=False, default=False)
    contingencies = Column(JSON, nullable=False, default=list)
    additional_terms = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    responded_at = Column(DateTime(timezone=True), nullable=True)
