"""
Battle State Machine - lifecycle of a head-to-head battle.

    create ──> waiting ──join──> in_progress ──both submitted──> completed
       └────> invited ──accept─┘
                 └──decline──> waiting

Every transition is a compare-and-set on the stored status, so two users
racing to join the same open battle cannot both win, and a battle is
finalized (winner credited) exactly once.

A user may take part in any number of in_progress battles at the same time.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.settings import BATTLE_DEFAULT_DURATION_MINUTES, BATTLE_DEFAULT_PRIZE_POINTS
from domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from domain.judging.evaluator import EvaluationResult, Executor, TestEvaluator
from domain.judging.scorer import derive_status
from domain.records import (
    BattleOutcome,
    BattleRecord,
    BattleStatus,
    ChallengeRecord,
    SubmissionRecord,
    utc_now,
)
from domain.repository import RecordStore

logger = logging.getLogger(__name__)

LIST_SCOPES = ("available", "active", "completed", "history", "all")


@dataclass
class BattleSubmitResult:
    submission: SubmissionRecord
    passed: int
    total: int
    battle_completed: bool = False
    winner_id: Optional[str] = None
    outcome: Optional[BattleOutcome] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "submission_id": self.submission.id,
            "status": self.submission.status.value,
            "points": self.submission.score,
            "passed": self.passed,
            "total": self.total,
            "test_results": self.submission.test_results,
            "error_message": self.submission.error_message,
        }
        if self.battle_completed:
            data["battle_completed"] = True
            data["winner"] = self.winner_id
            data["outcome"] = self.outcome.value if self.outcome else None
        return data


def battle_score(point_value: int, evaluation: EvaluationResult) -> int:
    """Full points when every case passes, otherwise partial credit by passed cases."""
    if evaluation.all_passed:
        return point_value
    return int(round(point_value * evaluation.passed_count / max(1, evaluation.total)))


def outcome_for(user_id: str, winner_id: Optional[str]) -> BattleOutcome:
    if winner_id is None:
        return BattleOutcome.DRAWN
    return BattleOutcome.WON if winner_id == user_id else BattleOutcome.LOST


class BattleStateMachine:

    def __init__(self, store: RecordStore, client: Executor, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.client = client
        self.evaluator = TestEvaluator(client)
        self._clock = clock

    # ---- queries ----

    def load(self, battle_id: str) -> BattleRecord:
        battle = self.store.get_battle(battle_id) if battle_id else None
        if battle is None:
            raise NotFoundError("Battle not found")
        return battle

    def get(self, battle_id: str) -> Tuple[BattleRecord, Optional[ChallengeRecord]]:
        battle = self.load(battle_id)
        challenge = self.store.get_challenge(battle.challenge_id) if battle.challenge_id else None
        return battle, challenge

    def list(self, scope: str = "all", viewer_id: Optional[str] = None) -> List[BattleRecord]:
        if scope == "available":
            battles = self.store.list_battles([BattleStatus.WAITING, BattleStatus.INVITED])
            # Invitations are only visible to the invitee
            return [
                b for b in battles
                if b.status == BattleStatus.WAITING or (viewer_id is not None and b.invited_id == viewer_id)
            ]
        if scope == "active":
            return self.store.list_battles([BattleStatus.IN_PROGRESS])
        if scope in ("completed", "history"):
            return self.store.list_battles([BattleStatus.COMPLETED])
        return self.store.list_battles()

    def latest_submission(self, user_id: str, battle_id: str) -> Optional[SubmissionRecord]:
        if not battle_id:
            raise ValidationError("battle_id is required")
        return self.store.latest_submission(user_id, battle_id=battle_id)

    # ---- transitions ----

    def create(
        self,
        creator_id: str,
        title: str,
        challenge_id: Optional[str] = None,
        invited_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        prize_points: Optional[int] = None,
        language: Optional[str] = None,
    ) -> BattleRecord:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title required")
        if invited_id is not None and invited_id == creator_id:
            raise ValidationError("You cannot invite yourself")
        if challenge_id:
            challenge = self.store.get_challenge(challenge_id)
            if challenge is None or not challenge.is_active:
                raise NotFoundError("Challenge not found")

        duration = BATTLE_DEFAULT_DURATION_MINUTES if duration_minutes is None else duration_minutes
        prize = BATTLE_DEFAULT_PRIZE_POINTS if prize_points is None else prize_points

        battle = self.store.insert_battle(
            BattleRecord(
                id="",
                title=title,
                creator_id=creator_id,
                status=BattleStatus.INVITED if invited_id else BattleStatus.WAITING,
                challenge_id=challenge_id or None,
                invited_id=invited_id,
                language=(language or "python").strip().lower(),
                duration_minutes=max(1, int(duration)),
                prize_points=max(0, int(prize)),
            )
        )
        logger.info(f"Battle {battle.id} created by {creator_id} ({battle.status.value})")
        return battle

    def join(self, user_id: str, battle_id: str) -> BattleRecord:
        battle = self.load(battle_id)
        if battle.creator_id == user_id:
            raise ConflictError("You cannot join your own battle")
        if battle.status != BattleStatus.WAITING:
            raise ConflictError("Battle not joinable")

        joined = self.store.compare_and_set_battle_status(
            battle.id,
            BattleStatus.WAITING,
            BattleStatus.IN_PROGRESS,
            {"opponent_id": user_id, "started_at": self._clock()},
        )
        if not joined:
            raise ConflictError("Battle no longer joinable")
        logger.info(f"Battle {battle.id}: {user_id} joined")
        return self.load(battle.id)

    def accept(self, user_id: str, battle_id: str) -> BattleRecord:
        battle = self._invitation(user_id, battle_id)
        accepted = self.store.compare_and_set_battle_status(
            battle.id,
            BattleStatus.INVITED,
            BattleStatus.IN_PROGRESS,
            {"opponent_id": user_id, "invited_id": None, "started_at": self._clock()},
        )
        if not accepted:
            raise ConflictError("Battle not invited")
        logger.info(f"Battle {battle.id}: invitation accepted by {user_id}")
        return self.load(battle.id)

    def decline(self, user_id: str, battle_id: str) -> BattleRecord:
        battle = self._invitation(user_id, battle_id)
        declined = self.store.compare_and_set_battle_status(
            battle.id,
            BattleStatus.INVITED,
            BattleStatus.WAITING,
            {"invited_id": None},
        )
        if not declined:
            raise ConflictError("Battle not invited")
        logger.info(f"Battle {battle.id}: invitation declined by {user_id}")
        return self.load(battle.id)

    def _invitation(self, user_id: str, battle_id: str) -> BattleRecord:
        battle = self.load(battle_id)
        if battle.status != BattleStatus.INVITED:
            raise ConflictError("Battle not invited")
        if battle.invited_id != user_id:
            raise AuthorizationError("Not the invited user")
        return battle

    def submit(self, user_id: str, battle_id: str, language: str, code: str) -> BattleSubmitResult:
        battle = self.load(battle_id)
        if battle.status != BattleStatus.IN_PROGRESS:
            raise ConflictError("Battle not active")
        if not battle.is_participant(user_id):
            raise AuthorizationError("Not a participant")
        if not battle.challenge_id:
            raise ValidationError("No challenge associated")
        challenge = self.store.get_challenge(battle.challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge not found")

        language = (language or "").strip().lower()
        self.client.validate(code, language)

        evaluation = self.evaluator.evaluate(code, language, challenge.test_cases)

        # Status check, insert and finalization see one snapshot of the battle
        with self.store.battle_scope(battle.id):
            if self.load(battle.id).status != BattleStatus.IN_PROGRESS:
                raise ConflictError("Battle not active")

            submission = self.store.insert_submission(
                SubmissionRecord(
                    user_id=user_id,
                    challenge_id=challenge.id,
                    battle_id=battle.id,
                    language=language,
                    code=code,
                    status=derive_status(evaluation),
                    score=battle_score(challenge.point_value, evaluation),
                    test_results=evaluation.results_as_dicts(),
                    execution_time=evaluation.worst_case_time,
                    error_message=evaluation.error_text,
                )
            )
            result = BattleSubmitResult(
                submission=submission,
                passed=evaluation.passed_count,
                total=evaluation.total,
            )

            other_id = battle.other_participant(user_id)
            my_best = self.store.find_best_score(user_id, battle_id=battle.id)
            other_best = self.store.find_best_score(other_id, battle_id=battle.id) if other_id else None
            if my_best is None or other_best is None:
                return result

            if my_best > other_best:
                winner_id = user_id
            elif other_best > my_best:
                winner_id = other_id
            else:
                winner_id = None

            if self._finalize(battle, challenge, winner_id):
                final_winner = winner_id
            else:
                final_winner = self.load(battle.id).winner_id

        result.battle_completed = True
        result.winner_id = final_winner
        result.outcome = outcome_for(user_id, final_winner)
        return result

    def _finalize(self, battle: BattleRecord, challenge: ChallengeRecord, winner_id: Optional[str]) -> bool:
        completed = self.store.compare_and_set_battle_status(
            battle.id,
            BattleStatus.IN_PROGRESS,
            BattleStatus.COMPLETED,
            {"winner_id": winner_id, "completed_at": self._clock()},
        )
        if not completed:
            return False

        if winner_id is not None:
            loser_id = battle.other_participant(winner_id)
            self.store.increment_user_counters(winner_id, {"points": challenge.point_value, "battles_won": 1})
            if loser_id:
                self.store.increment_user_counters(loser_id, {"battles_lost": 1})
        logger.info(f"Battle {battle.id} completed: winner={winner_id or 'draw'}")
        return True


def battle_view(battle: BattleRecord, challenge: Optional[ChallengeRecord] = None) -> Dict[str, Any]:
    data = battle.to_dict()
    if challenge is not None:
        data["challenge"] = challenge.public_dict()
    return data


__all__ = [
    "BattleStateMachine",
    "BattleSubmitResult",
    "battle_score",
    "battle_view",
    "outcome_for",
    "LIST_SCOPES",
]
