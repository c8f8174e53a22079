"""
Core database models.
Contains: User, Challenge, TestCase
"""
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from app.db import Base
from domain.records import utc_now


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """User model - the score-relevant slice of a profile.

    Account data (passwords, emails, profile fields) belongs to the auth service.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(150), unique=True, index=True, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Score state
    points = Column(Integer, default=0, nullable=False)
    streak_days = Column(Integer, default=0, nullable=False)
    last_activity = Column(DateTime(timezone=True), nullable=True)
    challenges_solved = Column(Integer, default=0, nullable=False)
    battles_won = Column(Integer, default=0, nullable=False)
    battles_lost = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)

    # Relationships
    submissions = relationship("Submission", back_populates="user", cascade="all, delete-orphan")


class Challenge(Base):
    """Challenge model - a judged programming task"""
    __tablename__ = "challenges"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    difficulty = Column(String(20), nullable=True)  # easy, medium, hard
    points = Column(Integer, nullable=True)  # NULL -> derived from difficulty
    supported_languages = Column(JSON, nullable=True)
    is_daily = Column(Boolean, default=False, nullable=False)
    publish_date = Column(Date, nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    testcases = relationship(
        "TestCase",
        back_populates="challenge",
        cascade="all, delete-orphan",
        order_by="TestCase.position",
    )


class TestCase(Base):
    """Test case model for challenges"""
    __tablename__ = "test_cases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    challenge_id = Column(String(32), ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    input = Column(Text, nullable=True)
    expected_output = Column(Text, nullable=True)

    # Relationships
    challenge = relationship("Challenge", back_populates="testcases")
