from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, String, Text

from homexrei.db.base import Base


class Insight(Base):
    __tablename__ = "insights"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    created_by = Column(String, nullable=False, index=True)  # author email
    title = Column(String, nullable=True)
    content = Column(Text, nullable=True)
    photo_urls = Column(JSON, nullable=False, default=list)
    video_url = Column(String, nullable=True)
    video_generated_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
