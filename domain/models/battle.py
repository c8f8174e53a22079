"""
Battle database models.
Contains: Battle
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.db import Base
from domain.records import utc_now
from .core import new_id


class Battle(Base):
    """Head-to-head battle between a creator and one opponent.

    Status only moves through the battle state machine; rows are never deleted.
    """
    __tablename__ = "battles"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    challenge_id = Column(String(32), ForeignKey("challenges.id", ondelete="SET NULL"), nullable=True)
    language = Column(String(20), nullable=True)

    creator_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    invited_id = Column(String(32), ForeignKey("users.id"), nullable=True, index=True)
    opponent_id = Column(String(32), ForeignKey("users.id"), nullable=True, index=True)
    winner_id = Column(String(32), ForeignKey("users.id"), nullable=True)

    status = Column(String(20), nullable=False, default="waiting", index=True)
    duration_minutes = Column(Integer, nullable=False, default=30)
    prize_points = Column(Integer, nullable=False, default=25)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
