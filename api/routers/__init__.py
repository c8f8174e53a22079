"""API routers (preferred import path)."""

from .challenges import router as challenges_router
from .battles import router as battles_router
from .leaderboard import router as leaderboard_router
from .system import router as system_router
from .submissions import router as submissions_router

__all__ = [
    "challenges_router",
    "battles_router",
    "submissions_router",
    "leaderboard_router",
    "system_router",
]
