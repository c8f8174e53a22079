"""
Submission database models.
Contains: Submission
"""
from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from app.db import Base
from domain.records import utc_now
from .core import new_id


class Submission(Base):
    """Append-only log of evaluated code submissions"""
    __tablename__ = "submissions"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    challenge_id = Column(String(32), ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False)
    # Set only for battle submissions; challenge-path submissions keep it NULL
    battle_id = Column(String(32), ForeignKey("battles.id", ondelete="CASCADE"), nullable=True)

    # Code submitted
    language = Column(String(20), nullable=False)
    code = Column(Text, nullable=False)

    # Results
    status = Column(String(32), nullable=False)
    score = Column(Integer, default=0, nullable=False)
    test_results = Column(JSON, nullable=True)  # Ordered per-case results
    execution_time = Column(Float, default=0.0)
    error_message = Column(Text, nullable=True)

    # Metadata
    submitted_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    # Relationships
    user = relationship("User", back_populates="submissions")

    __table_args__ = (
        Index("idx_submissions_user_challenge", "user_id", "challenge_id"),
        Index("idx_submissions_user_battle", "user_id", "battle_id"),
    )
