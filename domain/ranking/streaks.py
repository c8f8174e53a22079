"""
Streak Tracker - consecutive days with at least one accepted challenge submission.

Day boundaries come from a single reference timezone (STREAK_TIMEZONE), so a
user's streak does not depend on where a request came from or where the
server runs.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from app.settings import STREAK_TIMEZONE
from domain.records import utc_now
from domain.repository import RecordStore

logger = logging.getLogger(__name__)


class StreakTracker:

    def __init__(
        self,
        store: RecordStore,
        tz_name: str = STREAK_TIMEZONE,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.tz = ZoneInfo(tz_name)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def local_day(self, moment: datetime) -> date:
        # Naive timestamps (e.g. read back from SQLite) are stored as UTC
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date()

    def next_streak(self, current: int, last_activity: Optional[datetime], now: datetime) -> int:
        today = self.local_day(now)
        if last_activity is None:
            return 1
        last_day = self.local_day(last_activity)
        if last_day == today:
            return current
        if last_day == today - timedelta(days=1):
            return current + 1
        return 1

    def record_accepted(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Update streak and last_activity for an accepted challenge submission.

        Call inside the user's store scope so the read and the write see the
        same snapshot.
        """
        now = now or self.now()
        user = self.store.get_user(user_id)
        if user is None:
            return 0

        streak = self.next_streak(user.streak_days, user.last_activity, now)
        self.store.set_user_activity(user_id, streak, now)
        if streak != user.streak_days:
            logger.info(f"User {user_id}: streak {user.streak_days} -> {streak}")
        return streak


__all__ = ["StreakTracker", "utc_now"]
