"""
Leaderboard Aggregator - ranked standings derived from persisted records.

Two point pools are computed independently per user:
- challenge points: sum of the best accepted score per distinct challenge,
  battle submissions excluded (the same best-score rule the scorer uses);
- battle points: sum of the best score per distinct battle.

The main ranking keys on the canonical ledger (`users.points`) minus both
pools, so neither category silently inflates the other. The battles view
ranks on battle points alone.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.settings import LEADERBOARD_LIMIT
from domain.records import BattleStatus, SubmissionRecord, SubmissionStatus, UserRecord
from domain.repository import RecordStore

logger = logging.getLogger(__name__)

SCOPE_OVERALL = "overall"
SCOPE_BATTLES = "battles"


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    username: str
    total_points: int
    raw_points: int = 0
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "username": self.username,
            "total_points": self.total_points,
            "raw_points": self.raw_points,
            "stats": self.stats,
        }


def best_challenge_scores(submissions: List[SubmissionRecord]) -> Dict[Tuple[str, str], int]:
    best: Dict[Tuple[str, str], int] = {}
    for s in submissions:
        if s.battle_id is not None or s.status != SubmissionStatus.ACCEPTED:
            continue
        key = (s.user_id, s.challenge_id)
        best[key] = max(best.get(key, 0), s.score)
    return best


def best_battle_scores(submissions: List[SubmissionRecord]) -> Dict[Tuple[str, str], int]:
    best: Dict[Tuple[str, str], int] = {}
    for s in submissions:
        if s.battle_id is None:
            continue
        key = (s.user_id, s.battle_id)
        best[key] = max(best.get(key, 0), s.score)
    return best


class LeaderboardAggregator:

    def __init__(self, store: RecordStore, default_limit: int = LEADERBOARD_LIMIT):
        self.store = store
        self.default_limit = default_limit

    def rank(self, scope: str = SCOPE_OVERALL, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        limit = self.default_limit if limit is None else max(1, limit)
        users = self.store.list_users(active_only=True)
        user_ids = [u.id for u in users]
        submissions = self.store.list_submissions(user_ids)

        challenge_points: Dict[str, int] = defaultdict(int)
        challenges_solved: Dict[str, int] = defaultdict(int)
        for (user_id, _challenge_id), score in best_challenge_scores(submissions).items():
            challenge_points[user_id] += score
            challenges_solved[user_id] += 1

        battle_points: Dict[str, int] = defaultdict(int)
        for (user_id, _battle_id), score in best_battle_scores(submissions).items():
            battle_points[user_id] += score

        battle_submissions: Dict[str, int] = defaultdict(int)
        for s in submissions:
            if s.battle_id is not None:
                battle_submissions[s.user_id] += 1

        records = self._battle_records()

        def stats_for(user: UserRecord) -> Dict[str, Any]:
            won, lost, drawn = records.get(user.id, (0, 0, 0))
            return {
                "challenges_solved": challenges_solved[user.id],
                "challenge_points": challenge_points[user.id],
                "battles_won": won,
                "battles_lost": lost,
                "battles_drawn": drawn,
                "battle_points": battle_points[user.id],
                "battle_submissions": battle_submissions[user.id],
                "current_streak": user.streak_days,
            }

        if scope == SCOPE_BATTLES:
            ranked = sorted(
                (u for u in users if battle_points[u.id] > 0),
                key=lambda u: (-battle_points[u.id], u.id),
            )
            return [
                LeaderboardEntry(
                    rank=i,
                    user_id=u.id,
                    username=u.username,
                    total_points=battle_points[u.id],
                    raw_points=u.points,
                    stats=stats_for(u),
                )
                for i, u in enumerate(ranked[:limit], start=1)
            ]

        def adjusted(user: UserRecord) -> int:
            return max(0, user.points - challenge_points[user.id] - battle_points[user.id])

        ranked = sorted(users, key=lambda u: (-adjusted(u), -u.streak_days, u.id))
        return [
            LeaderboardEntry(
                rank=i,
                user_id=u.id,
                username=u.username,
                total_points=adjusted(u),
                raw_points=u.points,
                stats=stats_for(u),
            )
            for i, u in enumerate(ranked[:limit], start=1)
        ]

    def _battle_records(self) -> Dict[str, Tuple[int, int, int]]:
        """(won, lost, drawn) per user from completed battles."""
        tally: Dict[str, List[int]] = defaultdict(lambda: [0, 0, 0])
        for battle in self.store.list_battles([BattleStatus.COMPLETED]):
            participants = [p for p in (battle.creator_id, battle.opponent_id) if p]
            for user_id in participants:
                if battle.winner_id is None:
                    tally[user_id][2] += 1
                elif battle.winner_id == user_id:
                    tally[user_id][0] += 1
                else:
                    tally[user_id][1] += 1
        return {user_id: tuple(counts) for user_id, counts in tally.items()}


__all__ = [
    "LeaderboardAggregator",
    "LeaderboardEntry",
    "SCOPE_OVERALL",
    "SCOPE_BATTLES",
    "best_challenge_scores",
    "best_battle_scores",
]
