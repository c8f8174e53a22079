"""Dependency providers for the API layer.

Long-lived collaborators (record store, execution client) are built once per
process; request-scoped services are cheap wrappers around them. Tests swap
them out with `app.dependency_overrides`.
"""

import logging
from functools import lru_cache

from fastapi import Depends

from domain.battles import BattleStateMachine
from domain.judging import SubmissionScorer
from domain.ranking import LeaderboardAggregator, StreakTracker
from domain.repository import RecordStore
from infra.repository import InMemoryRecordStore, SqlRecordStore
from infra.services import ExecutionClient
from .db import get_engine, make_session_factory
from .settings import STORE_BACKEND

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    if STORE_BACKEND == "memory":
        logger.warning("STORE_BACKEND=memory - records are lost on restart")
        return InMemoryRecordStore()
    return SqlRecordStore(make_session_factory(get_engine()))


@lru_cache(maxsize=1)
def get_execution_client() -> ExecutionClient:
    return ExecutionClient()


def get_streak_tracker(store: RecordStore = Depends(get_store)) -> StreakTracker:
    return StreakTracker(store)


def get_scorer(
    store: RecordStore = Depends(get_store),
    client: ExecutionClient = Depends(get_execution_client),
    streaks: StreakTracker = Depends(get_streak_tracker),
) -> SubmissionScorer:
    return SubmissionScorer(store, client, streaks)


def get_battle_machine(
    store: RecordStore = Depends(get_store),
    client: ExecutionClient = Depends(get_execution_client),
) -> BattleStateMachine:
    return BattleStateMachine(store, client)


def get_leaderboard(store: RecordStore = Depends(get_store)) -> LeaderboardAggregator:
    return LeaderboardAggregator(store)


__all__ = [
    "get_store",
    "get_execution_client",
    "get_streak_tracker",
    "get_scorer",
    "get_battle_machine",
    "get_leaderboard",
]
