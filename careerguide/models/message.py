"""Message model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from careerguide.database import Base


class Message(Base):
    """One student message and at most one counselor reply."""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    counselor_id = Column(Integer, ForeignKey("counselors.id"), index=True)
    message = Column(Text, nullable=False)
    reply = Column(Text)
    status = Column(String(20), default="sent")  # sent/replied
    timestamp = Column(DateTime, default=datetime.now)
    replied_at = Column(DateTime)
