"""
Submission Scorer - turns an evaluation into a submission status, a score and
user point changes.

Rules:
- accepted iff every authored test case passed; otherwise the evaluator's
  failure kind, else wrong_answer.
- accepted submissions score the challenge's point value, everything else 0.
- the user's points grow by max(0, new score - previous best accepted score),
  so re-solving a challenge never credits twice; challenges_solved counts a
  challenge only on its first acceptance.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from domain.errors import NotFoundError, ValidationError
from domain.ranking.streaks import StreakTracker
from domain.records import (
    ChallengeRecord,
    OutcomeKind,
    SubmissionRecord,
    SubmissionStatus,
)
from domain.repository import RecordStore
from .evaluator import EvaluationResult, Executor, TestEvaluator

logger = logging.getLogger(__name__)


@dataclass
class ScoreOutcome:
    status: SubmissionStatus
    awarded_score: int
    is_first_acceptance: bool
    points_delta: int
    previous_best: Optional[int] = None

    @property
    def already_accepted(self) -> bool:
        return self.previous_best is not None

    @property
    def best_score(self) -> int:
        return max(self.previous_best or 0, self.awarded_score)


def derive_status(evaluation: EvaluationResult) -> SubmissionStatus:
    if evaluation.all_passed:
        return SubmissionStatus.ACCEPTED
    if evaluation.overall_status != OutcomeKind.SUCCESS:
        return SubmissionStatus(evaluation.overall_status.value)
    return SubmissionStatus.WRONG_ANSWER


def points_delta(new_score: int, previous_best: Optional[int]) -> int:
    return max(0, new_score - (previous_best or 0))


class SubmissionScorer:

    def __init__(self, store: RecordStore, client: Executor, streaks: StreakTracker):
        self.store = store
        self.client = client
        self.evaluator = TestEvaluator(client)
        self.streaks = streaks

    def score(self, user_id: str, challenge: ChallengeRecord, evaluation: EvaluationResult) -> ScoreOutcome:
        """Score an evaluation against the user's current best for the challenge.

        Reads the prior best; run it inside `store.user_scope(user_id)` together
        with the writes that depend on it.
        """
        status = derive_status(evaluation)
        awarded = challenge.point_value if status == SubmissionStatus.ACCEPTED else 0
        previous_best = self.store.find_best_score(user_id, challenge_id=challenge.id)

        return ScoreOutcome(
            status=status,
            awarded_score=awarded,
            is_first_acceptance=status == SubmissionStatus.ACCEPTED and previous_best is None,
            points_delta=points_delta(awarded, previous_best),
            previous_best=previous_best,
        )

    def load_challenge(self, challenge_id: str) -> ChallengeRecord:
        challenge = self.store.get_challenge(challenge_id)
        if challenge is None or not challenge.is_active:
            raise NotFoundError("Challenge not found")
        return challenge

    def submit(self, user_id: str, challenge_id: str, language: str, code: str) -> Tuple[SubmissionRecord, ScoreOutcome]:
        if not challenge_id:
            raise ValidationError("Challenge ID, language, and code are required")
        if self.store.get_user(user_id) is None:
            raise NotFoundError("User not found")

        challenge = self.load_challenge(challenge_id)
        language = (language or "").strip().lower()
        self.client.validate(code, language)
        if challenge.supported_languages and language not in challenge.supported_languages:
            raise ValidationError(f"Language '{language}' is not supported for this challenge")

        # Network-bound; runs outside the user scope
        evaluation = self.evaluator.evaluate(code, language, challenge.test_cases)

        with self.store.user_scope(user_id):
            outcome = self.score(user_id, challenge, evaluation)
            submission = self.store.insert_submission(
                SubmissionRecord(
                    user_id=user_id,
                    challenge_id=challenge.id,
                    language=language,
                    code=code,
                    status=outcome.status,
                    score=outcome.awarded_score,
                    test_results=evaluation.results_as_dicts(),
                    execution_time=evaluation.worst_case_time,
                    error_message=evaluation.error_text,
                )
            )

            deltas = {"points": outcome.points_delta}
            if outcome.is_first_acceptance:
                deltas["challenges_solved"] = 1
            self.store.increment_user_counters(user_id, deltas)

            if outcome.status == SubmissionStatus.ACCEPTED:
                self.streaks.record_accepted(user_id)

        logger.info(
            f"Submission {submission.id} user={user_id} challenge={challenge.id}: "
            f"{outcome.status.value} score={outcome.awarded_score} delta={outcome.points_delta}"
        )
        return submission, outcome

    def run(self, language: str, code: str, stdin: Optional[str]):
        """Execute once without scoring or persisting anything."""
        return self.client.execute(code, (language or "").strip().lower(), stdin)


__all__ = ["SubmissionScorer", "ScoreOutcome", "derive_status", "points_delta"]
