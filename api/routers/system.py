"""System/utility endpoints
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from app.settings import (
    APP_TITLE,
    APP_VERSION,
    EXEC_COMPILE_TIMEOUT_MS,
    EXEC_RUN_TIMEOUT_MS,
    LEADERBOARD_LIMIT,
    MAX_CODE_LENGTH,
    STREAK_TIMEZONE,
)
from infra.services import SUPPORTED_LANGUAGES

router = APIRouter(tags=["system"])


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return {"status": "healthy", "service": APP_TITLE, "version": APP_VERSION}


@router.get("/api/config")
async def get_config():
    return {
        "compile_timeout_ms": EXEC_COMPILE_TIMEOUT_MS,
        "run_timeout_ms": EXEC_RUN_TIMEOUT_MS,
        "max_code_length": MAX_CODE_LENGTH,
        "languages": sorted(SUPPORTED_LANGUAGES),
        "streak_timezone": STREAK_TIMEZONE,
        "leaderboard_limit": LEADERBOARD_LIMIT,
    }


__all__ = ["router"]
