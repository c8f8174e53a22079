"""SQLAlchemy implementation of the record store."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import ContextManager, Dict, Iterable, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from domain.models import Battle, Challenge, Submission, User
from domain.models.core import new_id
from domain.records import (
    BattleRecord,
    BattleStatus,
    ChallengeRecord,
    SubmissionRecord,
    SubmissionStatus,
    TestCaseRecord,
    UserRecord,
    utc_now,
)
from domain.repository import USER_COUNTERS, RecordStore

logger = logging.getLogger(__name__)


def _user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        points=row.points or 0,
        streak_days=row.streak_days or 0,
        last_activity=row.last_activity,
        challenges_solved=row.challenges_solved or 0,
        battles_won=row.battles_won or 0,
        battles_lost=row.battles_lost or 0,
        is_active=bool(row.is_active),
        is_admin=bool(row.is_admin),
        created_at=row.created_at,
    )


def _challenge_record(row: Challenge) -> ChallengeRecord:
    cases = sorted(row.testcases, key=lambda tc: (tc.position, tc.id))
    return ChallengeRecord(
        id=row.id,
        title=row.title,
        description=row.description or "",
        difficulty=row.difficulty,
        points=row.points,
        supported_languages=list(row.supported_languages or []),
        is_daily=bool(row.is_daily),
        publish_date=row.publish_date,
        is_active=bool(row.is_active),
        test_cases=[TestCaseRecord(input=tc.input or "", expected_output=tc.expected_output or "") for tc in cases],
    )


def _submission_record(row: Submission) -> SubmissionRecord:
    return SubmissionRecord(
        id=row.id,
        user_id=row.user_id,
        challenge_id=row.challenge_id,
        battle_id=row.battle_id,
        language=row.language,
        code=row.code,
        status=SubmissionStatus(row.status),
        score=row.score or 0,
        test_results=list(row.test_results or []),
        execution_time=row.execution_time or 0.0,
        error_message=row.error_message,
        submitted_at=row.submitted_at,
    )


def _battle_record(row: Battle) -> BattleRecord:
    return BattleRecord(
        id=row.id,
        title=row.title,
        challenge_id=row.challenge_id,
        language=row.language,
        creator_id=row.creator_id,
        invited_id=row.invited_id,
        opponent_id=row.opponent_id,
        winner_id=row.winner_id,
        status=BattleStatus(row.status),
        duration_minutes=row.duration_minutes,
        prize_points=row.prize_points,
        created_at=row.created_at,
        updated_at=row.updated_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


class SqlRecordStore(RecordStore):
    """Record store backed by a SQLAlchemy session factory.

    Each call runs in its own short transaction, except inside `user_scope` or
    `battle_scope` where every call on the same thread shares the scope's
    session. Lookups by id refresh rows already loaded by that session.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._local = threading.local()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        active = getattr(self._local, "session", None)
        if active is not None:
            yield active
            return

        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def _locked_scope(self, model, row_id: str) -> Iterator[None]:
        # Row lock (no-op on SQLite) held until the scope's transaction ends
        active = getattr(self._local, "session", None)
        if active is not None:
            active.query(model).filter(model.id == row_id).with_for_update().first()
            yield
            return

        db = self._session_factory()
        self._local.session = db
        try:
            db.query(model).filter(model.id == row_id).with_for_update().first()
            yield
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            self._local.session = None
            db.close()

    def user_scope(self, user_id: str) -> ContextManager[None]:
        return self._locked_scope(User, user_id)

    def battle_scope(self, battle_id: str) -> ContextManager[None]:
        return self._locked_scope(Battle, battle_id)

    # ---- users ----

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._session() as db:
            row = db.query(User).filter(User.id == user_id).populate_existing().first()
            return _user_record(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._session() as db:
            row = db.query(User).filter(User.username == username).first()
            return _user_record(row) if row else None

    def list_users(self, active_only: bool = True) -> List[UserRecord]:
        with self._session() as db:
            query = db.query(User)
            if active_only:
                query = query.filter(User.is_active.is_(True))
            return [_user_record(row) for row in query.order_by(User.id).all()]

    def increment_user_counters(self, user_id: str, deltas: Dict[str, int]) -> None:
        values = {}
        for name, delta in deltas.items():
            if name not in USER_COUNTERS:
                raise ValueError(f"Unknown user counter: {name}")
            if delta:
                column = getattr(User, name)
                values[column] = column + int(delta)
        if not values:
            return
        with self._session() as db:
            db.query(User).filter(User.id == user_id).update(values, synchronize_session=False)

    def set_user_activity(self, user_id: str, streak_days: int, last_activity: datetime) -> None:
        with self._session() as db:
            db.query(User).filter(User.id == user_id).update(
                {User.streak_days: streak_days, User.last_activity: last_activity},
                synchronize_session=False,
            )

    # ---- challenges ----

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        with self._session() as db:
            row = db.query(Challenge).filter(Challenge.id == challenge_id).first()
            return _challenge_record(row) if row else None

    def get_daily_challenge(self, day: date) -> Optional[ChallengeRecord]:
        with self._session() as db:
            base = db.query(Challenge).filter(Challenge.is_daily.is_(True), Challenge.is_active.is_(True))
            row = base.filter(Challenge.publish_date == day).first()
            if row is None:
                row = base.order_by(Challenge.publish_date.desc()).first()
            return _challenge_record(row) if row else None

    # ---- submissions ----

    def find_best_score(
        self,
        user_id: str,
        challenge_id: Optional[str] = None,
        battle_id: Optional[str] = None,
    ) -> Optional[int]:
        with self._session() as db:
            query = db.query(func.max(Submission.score)).filter(Submission.user_id == user_id)
            if battle_id is not None:
                query = query.filter(Submission.battle_id == battle_id)
            else:
                query = query.filter(
                    Submission.challenge_id == challenge_id,
                    Submission.battle_id.is_(None),
                    Submission.status == SubmissionStatus.ACCEPTED.value,
                )
            best = query.scalar()
            return int(best) if best is not None else None

    def insert_submission(self, submission: SubmissionRecord) -> SubmissionRecord:
        with self._session() as db:
            row = Submission(
                id=submission.id or new_id(),
                user_id=submission.user_id,
                challenge_id=submission.challenge_id,
                battle_id=submission.battle_id,
                language=submission.language,
                code=submission.code,
                status=submission.status.value,
                score=submission.score,
                test_results=submission.test_results,
                execution_time=submission.execution_time,
                error_message=submission.error_message,
                submitted_at=submission.submitted_at or utc_now(),
            )
            db.add(row)
            db.flush()
            return _submission_record(row)

    def get_submission(self, submission_id: str) -> Optional[SubmissionRecord]:
        with self._session() as db:
            row = db.query(Submission).filter(Submission.id == submission_id).first()
            return _submission_record(row) if row else None

    def latest_submission(
        self,
        user_id: str,
        challenge_id: Optional[str] = None,
        battle_id: Optional[str] = None,
    ) -> Optional[SubmissionRecord]:
        with self._session() as db:
            query = db.query(Submission).filter(Submission.user_id == user_id)
            if battle_id is not None:
                query = query.filter(Submission.battle_id == battle_id)
            else:
                query = query.filter(Submission.challenge_id == challenge_id, Submission.battle_id.is_(None))
            row = query.order_by(Submission.submitted_at.desc()).first()
            return _submission_record(row) if row else None

    def list_submissions(self, user_ids: Optional[Iterable[str]] = None) -> List[SubmissionRecord]:
        with self._session() as db:
            query = db.query(Submission)
            if user_ids is not None:
                query = query.filter(Submission.user_id.in_(list(user_ids)))
            return [_submission_record(row) for row in query.order_by(Submission.submitted_at).all()]

    # ---- battles ----

    def insert_battle(self, battle: BattleRecord) -> BattleRecord:
        now = utc_now()
        with self._session() as db:
            row = Battle(
                id=battle.id or new_id(),
                title=battle.title,
                challenge_id=battle.challenge_id,
                language=battle.language,
                creator_id=battle.creator_id,
                invited_id=battle.invited_id,
                opponent_id=battle.opponent_id,
                status=battle.status.value,
                duration_minutes=battle.duration_minutes,
                prize_points=battle.prize_points,
                created_at=battle.created_at or now,
                updated_at=battle.updated_at or now,
            )
            db.add(row)
            db.flush()
            return _battle_record(row)

    def get_battle(self, battle_id: str) -> Optional[BattleRecord]:
        with self._session() as db:
            row = db.query(Battle).filter(Battle.id == battle_id).populate_existing().first()
            return _battle_record(row) if row else None

    def list_battles(self, statuses: Optional[Iterable[BattleStatus]] = None) -> List[BattleRecord]:
        with self._session() as db:
            query = db.query(Battle)
            if statuses is not None:
                query = query.filter(Battle.status.in_([s.value for s in statuses]))
            rows = query.order_by(Battle.created_at.desc(), Battle.id.desc()).all()
            return [_battle_record(row) for row in rows]

    def compare_and_set_battle_status(
        self,
        battle_id: str,
        expected: BattleStatus,
        new: BattleStatus,
        fields: Optional[Dict[str, object]] = None,
    ) -> bool:
        values = {Battle.status: new.value, Battle.updated_at: utc_now()}
        for name, value in (fields or {}).items():
            values[getattr(Battle, name)] = value.value if isinstance(value, BattleStatus) else value

        with self._session() as db:
            updated = (
                db.query(Battle)
                .filter(Battle.id == battle_id, Battle.status == expected.value)
                .update(values, synchronize_session=False)
            )
        if updated != 1:
            logger.info(f"Battle {battle_id}: compare-and-set {expected.value}->{new.value} lost")
        return updated == 1


__all__ = ["SqlRecordStore"]
