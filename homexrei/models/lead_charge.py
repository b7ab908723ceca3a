"""
LeadCharge: a fee owed by a service provider for a qualified lead.
Status moves pending -> paid only through payment reconciliation.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Numeric, String

from homexrei.db.base import Base

LEAD_CHARGE_STATUSES = ("pending", "paid", "disputed", "refunded")


class LeadCharge(Base):
    __tablename__ = "lead_charges"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    provider_email = Column(String, nullable=False, index=True)
    provider_name = Column(String, nullable=True)
    project_title = Column(String, nullable=True)
    property_address = Column(String, nullable=True)
    lead_amount = Column(Numeric(12, 2), nullable=False)  # dollars
    lead_quality = Column(String, nullable=False, default="qualified")
    status = Column(String, nullable=False, default="pending", index=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
