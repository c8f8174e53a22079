from datetime import datetime, timedelta, timezone

import pytest
from conftest import fixed_clock

from domain.ranking import StreakTracker
from domain.records import UserRecord

# 2024-03-10 12:00 in Asia/Kolkata (UTC+05:30)
NOW = datetime(2024, 3, 10, 6, 30, tzinfo=timezone.utc)


@pytest.fixture
def tracker(store):
    return StreakTracker(store, tz_name="Asia/Kolkata", clock=fixed_clock(NOW))


def test_first_activity_starts_a_streak(tracker):
    assert tracker.next_streak(0, None, NOW) == 1


def test_activity_yesterday_extends_the_streak(tracker):
    assert tracker.next_streak(4, NOW - timedelta(days=1), NOW) == 5


def test_same_day_activity_leaves_streak_unchanged(tracker):
    assert tracker.next_streak(4, NOW - timedelta(hours=3), NOW) == 4


def test_gap_of_several_days_resets_to_one(tracker):
    assert tracker.next_streak(9, NOW - timedelta(days=3), NOW) == 1


def test_days_are_counted_in_kolkata_not_utc(tracker):
    # 23:00 UTC on the 9th is already 04:30 on the 10th in Kolkata
    late_utc = datetime(2024, 3, 9, 23, 0, tzinfo=timezone.utc)
    assert tracker.local_day(late_utc).isoformat() == "2024-03-10"
    assert tracker.next_streak(2, late_utc, NOW) == 2

    # 18:00 UTC on the 9th is 23:30 on the 9th in Kolkata, i.e. yesterday
    evening_utc = datetime(2024, 3, 9, 18, 0, tzinfo=timezone.utc)
    assert tracker.next_streak(2, evening_utc, NOW) == 3


def test_naive_timestamps_are_read_as_utc(tracker):
    naive = datetime(2024, 3, 9, 23, 0)
    assert tracker.local_day(naive).isoformat() == "2024-03-10"


def test_record_accepted_persists_streak_and_activity(tracker, store):
    store.add_user(UserRecord(id="dave", username="dave", streak_days=3, last_activity=NOW - timedelta(days=1)))

    assert tracker.record_accepted("dave") == 4
    user = store.get_user("dave")
    assert user.streak_days == 4
    assert user.last_activity == NOW

    # second acceptance on the same day
    assert tracker.record_accepted("dave", now=NOW + timedelta(hours=2)) == 4
