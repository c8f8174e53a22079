"""In-process record store.

Used for local demos (STORE_BACKEND=memory) and unit tests. Records are
copied on the way in and out so callers never share mutable state with the
store, the same as with a real database.
"""

from __future__ import annotations

import copy
import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import ContextManager, Dict, Iterable, Iterator, List, Optional

from domain.records import (
    BattleRecord,
    BattleStatus,
    ChallengeRecord,
    SubmissionRecord,
    SubmissionStatus,
    UserRecord,
    utc_now,
)
from domain.repository import USER_COUNTERS, RecordStore


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryRecordStore(RecordStore):

    def __init__(self):
        self._lock = threading.RLock()
        self._scope_locks: Dict[tuple, threading.RLock] = {}
        self._users: Dict[str, UserRecord] = {}
        self._challenges: Dict[str, ChallengeRecord] = {}
        self._submissions: List[SubmissionRecord] = []
        self._battles: Dict[str, BattleRecord] = {}
        self._battle_order: Dict[str, int] = {}
        self._seq = 0

    def _tick(self) -> int:
        # Insertion sequence breaks ties between equal timestamps
        self._seq += 1
        return self._seq

    # ---- seeding (not part of RecordStore) ----

    def add_user(self, user: UserRecord) -> UserRecord:
        with self._lock:
            stored = replace(user, created_at=user.created_at or utc_now())
            self._users[stored.id] = stored
            return replace(stored)

    def add_challenge(self, challenge: ChallengeRecord) -> ChallengeRecord:
        with self._lock:
            self._challenges[challenge.id] = copy.deepcopy(challenge)
            return copy.deepcopy(challenge)

    # ---- users ----

    @contextmanager
    def _scope(self, key: tuple) -> Iterator[None]:
        with self._lock:
            scope_lock = self._scope_locks.setdefault(key, threading.RLock())
        with scope_lock:
            yield

    def user_scope(self, user_id: str) -> ContextManager[None]:
        return self._scope(("user", user_id))

    def battle_scope(self, battle_id: str) -> ContextManager[None]:
        return self._scope(("battle", battle_id))

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return replace(user)
            return None

    def list_users(self, active_only: bool = True) -> List[UserRecord]:
        with self._lock:
            users = [replace(u) for u in self._users.values() if u.is_active or not active_only]
            return sorted(users, key=lambda u: u.id)

    def increment_user_counters(self, user_id: str, deltas: Dict[str, int]) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return
            for name, delta in deltas.items():
                if name not in USER_COUNTERS:
                    raise ValueError(f"Unknown user counter: {name}")
                setattr(user, name, getattr(user, name) + int(delta))

    def set_user_activity(self, user_id: str, streak_days: int, last_activity: datetime) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                user.streak_days = streak_days
                user.last_activity = last_activity

    # ---- challenges ----

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        with self._lock:
            challenge = self._challenges.get(challenge_id)
            return copy.deepcopy(challenge) if challenge else None

    def get_daily_challenge(self, day: date) -> Optional[ChallengeRecord]:
        with self._lock:
            daily = [c for c in self._challenges.values() if c.is_daily and c.is_active]
            for challenge in daily:
                if challenge.publish_date == day:
                    return copy.deepcopy(challenge)
            daily.sort(key=lambda c: c.publish_date or date.min, reverse=True)
            return copy.deepcopy(daily[0]) if daily else None

    # ---- submissions ----

    def find_best_score(
        self,
        user_id: str,
        challenge_id: Optional[str] = None,
        battle_id: Optional[str] = None,
    ) -> Optional[int]:
        with self._lock:
            if battle_id is not None:
                scores = [
                    s.score for s in self._submissions
                    if s.user_id == user_id and s.battle_id == battle_id
                ]
            else:
                scores = [
                    s.score for s in self._submissions
                    if s.user_id == user_id
                    and s.challenge_id == challenge_id
                    and s.battle_id is None
                    and s.status == SubmissionStatus.ACCEPTED
                ]
            return max(scores) if scores else None

    def insert_submission(self, submission: SubmissionRecord) -> SubmissionRecord:
        with self._lock:
            stored = copy.deepcopy(submission)
            stored.id = stored.id or _new_id()
            stored.submitted_at = stored.submitted_at or utc_now()
            self._submissions.append(stored)
            return copy.deepcopy(stored)

    def get_submission(self, submission_id: str) -> Optional[SubmissionRecord]:
        with self._lock:
            for submission in self._submissions:
                if submission.id == submission_id:
                    return copy.deepcopy(submission)
            return None

    def latest_submission(
        self,
        user_id: str,
        challenge_id: Optional[str] = None,
        battle_id: Optional[str] = None,
    ) -> Optional[SubmissionRecord]:
        with self._lock:
            # Append order is submission order
            for submission in reversed(self._submissions):
                if submission.user_id != user_id:
                    continue
                if battle_id is not None and submission.battle_id == battle_id:
                    return copy.deepcopy(submission)
                if battle_id is None and submission.battle_id is None and submission.challenge_id == challenge_id:
                    return copy.deepcopy(submission)
            return None

    def list_submissions(self, user_ids: Optional[Iterable[str]] = None) -> List[SubmissionRecord]:
        with self._lock:
            wanted = set(user_ids) if user_ids is not None else None
            return [
                copy.deepcopy(s) for s in self._submissions
                if wanted is None or s.user_id in wanted
            ]

    # ---- battles ----

    def insert_battle(self, battle: BattleRecord) -> BattleRecord:
        with self._lock:
            now = utc_now()
            stored = replace(
                battle,
                id=battle.id or _new_id(),
                created_at=battle.created_at or now,
                updated_at=battle.updated_at or now,
            )
            self._battles[stored.id] = stored
            self._battle_order[stored.id] = self._tick()
            return replace(stored)

    def get_battle(self, battle_id: str) -> Optional[BattleRecord]:
        with self._lock:
            battle = self._battles.get(battle_id)
            return replace(battle) if battle else None

    def list_battles(self, statuses: Optional[Iterable[BattleStatus]] = None) -> List[BattleRecord]:
        with self._lock:
            wanted = set(statuses) if statuses is not None else None
            battles = [b for b in self._battles.values() if wanted is None or b.status in wanted]
            battles.sort(key=lambda b: self._battle_order.get(b.id, 0), reverse=True)
            return [replace(b) for b in battles]

    def compare_and_set_battle_status(
        self,
        battle_id: str,
        expected: BattleStatus,
        new: BattleStatus,
        fields: Optional[Dict[str, object]] = None,
    ) -> bool:
        with self._lock:
            battle = self._battles.get(battle_id)
            if battle is None or battle.status != expected:
                return False
            battle.status = new
            battle.updated_at = utc_now()
            for name, value in (fields or {}).items():
                setattr(battle, name, value)
            return True


__all__ = ["InMemoryRecordStore"]
