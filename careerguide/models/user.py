"""User model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from careerguide.database import Base


class User(Base):
    """Represents a student account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255))
    phone = Column(String(50))
    location = Column(String(255))
    created_at = Column(DateTime, default=datetime.now)

    role = "student"
