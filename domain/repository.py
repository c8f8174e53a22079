"""Record store interface.

The judging, battle and ranking components only talk to storage through this
narrow interface, so they can run against SQLAlchemy in production and an
in-memory store in tests/dev.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import ContextManager, Dict, Iterable, List, Optional

from .records import (
    BattleRecord,
    BattleStatus,
    ChallengeRecord,
    SubmissionRecord,
    UserRecord,
)

# Counters that may be incremented through increment_user_counters
USER_COUNTERS = ("points", "challenges_solved", "battles_won", "battles_lost")


class RecordStore(ABC):

    # ---- users ----

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    def list_users(self, active_only: bool = True) -> List[UserRecord]:
        ...

    @abstractmethod
    def increment_user_counters(self, user_id: str, deltas: Dict[str, int]) -> None:
        """Atomically add `deltas` (keys from USER_COUNTERS) to the user's counters."""

    @abstractmethod
    def set_user_activity(self, user_id: str, streak_days: int, last_activity: datetime) -> None:
        ...

    @abstractmethod
    def user_scope(self, user_id: str) -> ContextManager[None]:
        """Consistent snapshot for a read-then-write sequence scoped to one user.

        Reads and writes issued inside the block are serialized against other
        scopes for the same user (row lock / per-user mutex).
        """

    # ---- challenges ----

    @abstractmethod
    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        ...

    @abstractmethod
    def get_daily_challenge(self, day: date) -> Optional[ChallengeRecord]:
        """Active daily challenge published on `day`, else the latest active daily one."""

    # ---- submissions ----

    @abstractmethod
    def find_best_score(
        self,
        user_id: str,
        challenge_id: Optional[str] = None,
        battle_id: Optional[str] = None,
    ) -> Optional[int]:
        """Best score for a (user, subject) pair, or None when nothing qualifies.

        With `battle_id`: max score over the user's submissions to that battle.
        Otherwise: max score over accepted challenge-path submissions
        (battle submissions excluded) for `challenge_id`.
        """

    @abstractmethod
    def insert_submission(self, submission: SubmissionRecord) -> SubmissionRecord:
        ...

    @abstractmethod
    def get_submission(self, submission_id: str) -> Optional[SubmissionRecord]:
        ...

    @abstractmethod
    def latest_submission(
        self,
        user_id: str,
        challenge_id: Optional[str] = None,
        battle_id: Optional[str] = None,
    ) -> Optional[SubmissionRecord]:
        ...

    @abstractmethod
    def list_submissions(self, user_ids: Optional[Iterable[str]] = None) -> List[SubmissionRecord]:
        ...

    # ---- battles ----

    @abstractmethod
    def insert_battle(self, battle: BattleRecord) -> BattleRecord:
        ...

    @abstractmethod
    def get_battle(self, battle_id: str) -> Optional[BattleRecord]:
        ...

    @abstractmethod
    def list_battles(self, statuses: Optional[Iterable[BattleStatus]] = None) -> List[BattleRecord]:
        """Battles newest first, optionally restricted to `statuses`."""

    @abstractmethod
    def battle_scope(self, battle_id: str) -> ContextManager[None]:
        """Serialize read-then-write sequences on one battle (row lock / per-battle mutex).

        Other scopes on the same battle wait until the block exits.
        """

    @abstractmethod
    def compare_and_set_battle_status(
        self,
        battle_id: str,
        expected: BattleStatus,
        new: BattleStatus,
        fields: Optional[Dict[str, object]] = None,
    ) -> bool:
        """Set status (and `fields`) only if the stored status is still `expected`.

        Returns False when another writer got there first.
        """


__all__ = ["RecordStore", "USER_COUNTERS"]
