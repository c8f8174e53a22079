"""Challenges Router - judging endpoints for standalone challenges.

Endpoints:
- POST /api/challenges/submit - Judge a solution against every test case and score it
- POST /api/challenges/run - Run code once with custom input (nothing is stored)
- GET /api/challenges/languages - Supported languages
- GET /api/challenges/daily - Today's daily challenge
- GET /api/challenges/submission - The caller's latest submission for a challenge
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from app.auth import get_current_user, get_user_id_from_authorization_header
from app.deps import get_scorer, get_store, get_streak_tracker
from domain.judging import SubmissionScorer
from domain.ranking import StreakTracker
from domain.records import UserRecord
from domain.repository import RecordStore
from infra.services import SUPPORTED_LANGUAGES

router = APIRouter(prefix="/api/challenges", tags=["challenges"])

logger = logging.getLogger(__name__)


class SubmitRequest(BaseModel):
    challenge_id: str
    language: str
    code: str


class SubmitResponse(BaseModel):
    submission_id: str
    status: str
    score: int
    test_results: List[Dict[str, Any]]
    error_message: Optional[str] = None
    execution_time: float
    already_accepted: bool
    best_points: int


class RunRequest(BaseModel):
    language: str
    code: str
    input: Optional[str] = None


class RunResponse(BaseModel):
    output: str
    error: Optional[str] = None
    execution_time: float
    status: str


@router.post("/submit", response_model=SubmitResponse)
def submit_solution(
    payload: SubmitRequest,
    user: UserRecord = Depends(get_current_user),
    scorer: SubmissionScorer = Depends(get_scorer),
):
    submission, outcome = scorer.submit(user.id, payload.challenge_id, payload.language, payload.code)
    return {
        "submission_id": submission.id,
        "status": submission.status.value,
        "score": submission.score,
        "test_results": submission.test_results,
        "error_message": submission.error_message,
        "execution_time": submission.execution_time,
        "already_accepted": outcome.already_accepted,
        "best_points": outcome.best_score,
    }


@router.post("/run", response_model=RunResponse)
def run_code(
    payload: RunRequest,
    user: UserRecord = Depends(get_current_user),
    scorer: SubmissionScorer = Depends(get_scorer),
):
    outcome = scorer.run(payload.language, payload.code, payload.input)
    logger.info(f"Run by {user.id} ({payload.language}): {outcome.kind.value}")
    return {
        "output": outcome.stdout,
        "error": outcome.error_text,
        "execution_time": outcome.elapsed_time,
        "status": outcome.kind.value,
    }


@router.get("/languages")
def list_languages():
    return {"languages": [runtime.to_dict() for runtime in SUPPORTED_LANGUAGES.values()]}


@router.get("/daily")
def get_daily_challenge(
    authorization: Optional[str] = Header(None),
    store: RecordStore = Depends(get_store),
    streaks: StreakTracker = Depends(get_streak_tracker),
):
    today = streaks.local_day(streaks.now())
    challenge = store.get_daily_challenge(today)
    if challenge is None:
        raise HTTPException(status_code=404, detail="No daily challenge available")

    data = challenge.public_dict()
    # Personalized only when a valid token is sent
    user_id = get_user_id_from_authorization_header(authorization)
    if user_id:
        data["completed"] = store.find_best_score(user_id, challenge_id=challenge.id) is not None
    return data


@router.get("/submission")
def get_latest_submission(
    challenge_id: str,
    user: UserRecord = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    submission = store.latest_submission(user.id, challenge_id=challenge_id)
    return {"submission": submission.to_dict(include_code=True) if submission else None}


__all__ = ["router"]
