"""Ranking: daily streaks and leaderboards."""

from .streaks import StreakTracker
from .leaderboard import LeaderboardAggregator, LeaderboardEntry, SCOPE_BATTLES, SCOPE_OVERALL

__all__ = [
    'StreakTracker',
    'LeaderboardAggregator',
    'LeaderboardEntry',
    'SCOPE_BATTLES',
    'SCOPE_OVERALL',
]
