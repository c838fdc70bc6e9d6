"""Problem and Favorite models."""

from sqlalchemy import Column, Index, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from ..database import Base


class Problem(Base):
    """A single academic problem owned by one user.

    Referenced, never owned, by file nodes in the user's tree.
    """

    __tablename__ = "problems"
    __table_args__ = (
        Index("ix_problems_user_id", "user_id"),
    )

    id = Column(String(50), primary_key=True)
    user_id = Column(String(50), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    subject = Column(String(100), nullable=False, default="")
    difficulty = Column(String(10), nullable=False, default="medium")
    description = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    time_ago = Column(String(50), nullable=False, default="")
    analysis_result = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Favorite(Base):
    """A user's bookmark on a problem."""

    __tablename__ = "favorites"

    user_id = Column(String(50), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    problem_id = Column(String(50), ForeignKey("problems.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
