"""Scheduled meeting model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text, Time
from careerguide.database import Base


class ScheduledMeeting(Base):
    """A meeting request from a student to a counselor, keyed by both emails."""
    __tablename__ = "scheduled_meetings"

    id = Column(Integer, primary_key=True)
    user_email = Column(String(255), index=True)
    counselor_email = Column(String(255), index=True)
    schedule_date = Column(Date)
    schedule_time = Column(Time)
    purpose = Column(Text)
    status = Column(String(20), default="scheduled")
    is_virtual_meet = Column(Boolean, default=False)
    meeting_platform = Column(String(50))
    meeting_link = Column(String(500))
    created_at = Column(DateTime, default=datetime.now)
