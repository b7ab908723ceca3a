from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text

from homexrei.db.base import Base

DEAL_TYPES = ("sale", "long_term_rent", "short_term_rent", "service_deal")
RENTAL_DEAL_TYPES = ("long_term_rent", "short_term_rent")


class Deal(Base):
    __tablename__ = "deals"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    user_email = Column(String, nullable=False, index=True)  # listing owner
    deal_type = Column(String, nullable=False, default="sale")
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    price = Column(Float, nullable=False)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Float, nullable=True)
    sqft = Column(Integer, nullable=True)
    photo_urls = Column(JSON, nullable=False, default=list)

    # Owner financing
    owner_financing_available = Column(Boolean, nullable=False, default=False)
    min_down_payment_percent = Column(Float, nullable=True)
    min_down_payment_amount = Column(Float, nullable=True)
    interest_rate = Column(Float, nullable=True)  # annual %
    term_years = Column(Float, nullable=True)
    property_tax_annual = Column(Float, nullable=True)
    insurance_annual = Column(Float, nullable=True)
    hoa_monthly = Column(Float, nullable=True)
    other_monthly_expenses = Column(JSON, nullable=False, default=list)  # [{"name", "amount"}]

    # Paid video generation
    video_url = Column(String, nullable=True)
    video_generated_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
