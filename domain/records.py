"""Plain records and status vocabularies shared by the judging/battle/ranking core.

Identifiers are opaque strings resolved once at the API boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class OutcomeKind(str, Enum):
    """Verdict of a single execution attempt"""
    SUCCESS = "success"
    COMPILATION_ERROR = "compilation_error"
    RUNTIME_ERROR = "runtime_error"
    TIME_LIMIT_EXCEEDED = "time_limit_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"


class SubmissionStatus(str, Enum):
    ACCEPTED = "accepted"
    WRONG_ANSWER = "wrong_answer"
    COMPILATION_ERROR = "compilation_error"
    RUNTIME_ERROR = "runtime_error"
    TIME_LIMIT_EXCEEDED = "time_limit_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"


class BattleStatus(str, Enum):
    WAITING = "waiting"
    INVITED = "invited"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class BattleOutcome(str, Enum):
    """Result of a completed battle from one participant's point of view.

    Kept apart from SubmissionStatus so battle results never overload "accepted".
    """
    WON = "won"
    LOST = "lost"
    DRAWN = "drawn"


def utc_now() -> datetime:
    """Timezone-aware current UTC time; every stored timestamp uses it."""
    return datetime.now(timezone.utc)


DIFFICULTY_POINTS: Dict[str, int] = {"easy": 25, "medium": 50, "hard": 100}
DEFAULT_POINTS = 25


@dataclass
class TestCaseRecord:
    __test__ = False  # keeps pytest from collecting it

    input: str
    expected_output: str


@dataclass
class ChallengeRecord:
    id: str
    title: str
    test_cases: List[TestCaseRecord] = field(default_factory=list)
    difficulty: Optional[str] = None
    points: Optional[int] = None
    description: str = ""
    supported_languages: List[str] = field(default_factory=list)
    is_daily: bool = False
    publish_date: Optional[date] = None
    is_active: bool = True

    @property
    def point_value(self) -> int:
        """Configured points, falling back to the difficulty default."""
        if self.points is not None and self.points >= 0:
            return int(self.points)
        return DIFFICULTY_POINTS.get((self.difficulty or "").lower(), DEFAULT_POINTS)

    def public_dict(self) -> Dict[str, Any]:
        # Test cases are never exposed to clients
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "points": self.point_value,
            "supported_languages": list(self.supported_languages),
            "is_daily": self.is_daily,
            "publish_date": self.publish_date.isoformat() if self.publish_date else None,
        }


@dataclass
class UserRecord:
    id: str
    username: str
    points: int = 0
    streak_days: int = 0
    last_activity: Optional[datetime] = None
    challenges_solved: int = 0
    battles_won: int = 0
    battles_lost: int = 0
    is_active: bool = True
    is_admin: bool = False
    created_at: Optional[datetime] = None


@dataclass
class SubmissionRecord:
    user_id: str
    challenge_id: str
    language: str
    code: str
    status: SubmissionStatus
    score: int
    test_results: List[Dict[str, Any]] = field(default_factory=list)
    execution_time: float = 0.0
    error_message: Optional[str] = None
    battle_id: Optional[str] = None
    submitted_at: Optional[datetime] = None
    id: Optional[str] = None

    def to_dict(self, include_code: bool = False) -> Dict[str, Any]:
        data = {
            "submission_id": self.id,
            "user_id": self.user_id,
            "challenge_id": self.challenge_id,
            "battle_id": self.battle_id,
            "language": self.language,
            "status": self.status.value,
            "score": self.score,
            "test_results": self.test_results,
            "execution_time": self.execution_time,
            "error_message": self.error_message,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }
        if include_code:
            data["code"] = self.code
        return data


@dataclass
class BattleRecord:
    id: str
    title: str
    creator_id: str
    status: BattleStatus
    challenge_id: Optional[str] = None
    invited_id: Optional[str] = None
    opponent_id: Optional[str] = None
    winner_id: Optional[str] = None
    language: Optional[str] = None
    duration_minutes: int = 30
    prize_points: int = 25
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def is_participant(self, user_id: str) -> bool:
        return user_id == self.creator_id or (self.opponent_id is not None and user_id == self.opponent_id)

    def other_participant(self, user_id: str) -> Optional[str]:
        if user_id == self.creator_id:
            return self.opponent_id
        if user_id == self.opponent_id:
            return self.creator_id
        return None

    def to_dict(self) -> Dict[str, Any]:
        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "title": self.title,
            "challenge_id": self.challenge_id,
            "language": self.language,
            "creator_id": self.creator_id,
            "invited_id": self.invited_id,
            "opponent_id": self.opponent_id,
            "winner_id": self.winner_id,
            "status": self.status.value,
            "duration_minutes": self.duration_minutes,
            "prize_points": self.prize_points,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
        }


__all__ = [
    "utc_now",
    "OutcomeKind",
    "SubmissionStatus",
    "BattleStatus",
    "BattleOutcome",
    "DIFFICULTY_POINTS",
    "DEFAULT_POINTS",
    "TestCaseRecord",
    "ChallengeRecord",
    "UserRecord",
    "SubmissionRecord",
    "BattleRecord",
]
