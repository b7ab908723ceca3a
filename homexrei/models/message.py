from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Text

from homexrei.db.base import Base


class Message(Base):
    """In-app inbox message."""

    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    sender_email = Column(String, nullable=False)
    sender_name = Column(String, nullable=True)
    recipient_email = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    thread_id = Column(String, nullable=False, index=True)
    reference_type = Column(String, nullable=True)  # deal / booking
    reference_id = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
