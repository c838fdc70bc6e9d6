"""User profile model.

A profile is the account row: credentials for the built-in auth routes plus
the display fields returned by ``/api/bootstrap``.
"""

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from ..database import Base


class Profile(Base):
    """User account and display profile.

    Plans:
        free: default
        pro: set through ``/api/profile``; no behaviour is attached server side
    """

    __tablename__ = "profiles"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=True)
    password_hash = Column(Text, nullable=True)
    avatar = Column(Text, nullable=True)
    plan = Column(String(20), nullable=False, default="free")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
