"""Counselor model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text
from careerguide.database import Base


class Counselor(Base):
    """Represents a counselor account and directory entry."""
    __tablename__ = "counselors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(50))
    specialization = Column(String(50))
    experience = Column(Integer, default=0)
    bio = Column(Text)
    rating = Column(Float, default=0.0)
    # [{"day": "Monday", "start": "09:00", "end": "12:00"}, ...] stored verbatim
    availability = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.now)

    role = "counselor"
