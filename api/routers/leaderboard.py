"""Leaderboard Router

Endpoints:
- GET /api/leaderboard - Overall standings (?type=battles for the battles-only view)
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.deps import get_leaderboard
from domain.errors import ValidationError
from domain.ranking import LeaderboardAggregator
from domain.ranking.leaderboard import SCOPE_BATTLES, SCOPE_OVERALL

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("")
def get_leaderboard_entries(
    type: Optional[str] = None,
    limit: Optional[int] = None,
    aggregator: LeaderboardAggregator = Depends(get_leaderboard),
):
    scope = (type or SCOPE_OVERALL).strip().lower()
    if scope not in (SCOPE_OVERALL, SCOPE_BATTLES):
        raise ValidationError(f"Unknown leaderboard type '{type}'")
    if limit is not None and limit < 1:
        raise ValidationError("limit must be positive")

    entries = aggregator.rank(scope, limit=limit)
    return {"type": scope, "total": len(entries), "items": [e.to_dict() for e in entries]}


__all__ = ["router"]
