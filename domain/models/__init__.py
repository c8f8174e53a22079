"""Models package - SQLAlchemy ORM models used by the SQL record store.

The judging/battle/ranking core never touches these directly; it works on the
plain records in `domain.records` through the `domain.repository` interface.
"""

# Database Models (SQLAlchemy ORM)
from .core import (
    User,
    Challenge,
    TestCase,
)
from .submission import Submission
from .battle import Battle

__all__ = [
    "User",
    "Challenge",
    "TestCase",
    "Submission",
    "Battle",
]
