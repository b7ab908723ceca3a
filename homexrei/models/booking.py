from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text

from homexrei.db.base import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    deal_id = Column(String, nullable=False, index=True)
    guest_email = Column(String, nullable=False, index=True)
    guest_name = Column(String, nullable=True)
    host_email = Column(String, nullable=False, index=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False, default=1)
    nights = Column(Integer, nullable=False)
    total_price = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
