import pytest

from domain.ranking import LeaderboardAggregator, SCOPE_BATTLES
from domain.records import BattleRecord, BattleStatus, SubmissionRecord, SubmissionStatus, UserRecord
from infra.repository import InMemoryRecordStore


def _submission(user_id, score, status=SubmissionStatus.ACCEPTED, challenge_id="double", battle_id=None):
    return SubmissionRecord(
        user_id=user_id,
        challenge_id=challenge_id,
        battle_id=battle_id,
        language="python",
        code="...",
        status=status,
        score=score,
    )


@pytest.fixture
def board_store():
    store = InMemoryRecordStore()
    store.add_user(UserRecord(id="alice", username="alice", points=120, streak_days=2))
    store.add_user(UserRecord(id="bob", username="bob", points=30, streak_days=5))
    store.add_user(UserRecord(id="carol", username="carol", points=10))
    store.add_user(UserRecord(id="dave", username="dave", points=999, is_active=False))
    store.add_user(UserRecord(id="erin", username="erin", points=30, streak_days=5))
    store.add_user(UserRecord(id="frank", username="frank", points=0))

    store.insert_submission(_submission("alice", 50))
    store.insert_submission(_submission("alice", 50))
    store.insert_submission(_submission("alice", 33, SubmissionStatus.WRONG_ANSWER, battle_id="b1"))
    store.insert_submission(_submission("alice", 40, SubmissionStatus.WRONG_ANSWER, battle_id="b1"))
    store.insert_submission(_submission("carol", 0, SubmissionStatus.WRONG_ANSWER))
    store.insert_submission(_submission("frank", 50))

    store.insert_battle(
        BattleRecord(id="b1", title="Won", creator_id="alice", opponent_id="bob",
                     status=BattleStatus.COMPLETED, winner_id="alice")
    )
    store.insert_battle(
        BattleRecord(id="b2", title="Drawn", creator_id="carol", opponent_id="alice",
                     status=BattleStatus.COMPLETED)
    )
    store.insert_battle(
        BattleRecord(id="b3", title="Running", creator_id="bob", opponent_id="erin",
                     status=BattleStatus.IN_PROGRESS)
    )
    return store


def test_overall_ranking_order_and_tie_breaks(board_store):
    entries = LeaderboardAggregator(board_store).rank()

    assert [e.user_id for e in entries] == ["bob", "erin", "alice", "carol", "frank"]
    assert [e.rank for e in entries] == [1, 2, 3, 4, 5]
    assert [e.total_points for e in entries] == [30, 30, 30, 10, 0]


def test_total_points_exclude_both_pools(board_store):
    alice = next(e for e in LeaderboardAggregator(board_store).rank() if e.user_id == "alice")

    assert alice.raw_points == 120
    # 120 - 50 (best per challenge) - 40 (best per battle)
    assert alice.total_points == 30
    assert alice.stats["challenge_points"] == 50
    assert alice.stats["challenges_solved"] == 1
    assert alice.stats["battle_points"] == 40
    assert alice.stats["battle_submissions"] == 2
    assert alice.stats["current_streak"] == 2


def test_battle_records_come_from_completed_battles(board_store):
    by_user = {e.user_id: e.stats for e in LeaderboardAggregator(board_store).rank()}

    assert (by_user["alice"]["battles_won"], by_user["alice"]["battles_lost"], by_user["alice"]["battles_drawn"]) == (1, 0, 1)
    assert (by_user["bob"]["battles_won"], by_user["bob"]["battles_lost"], by_user["bob"]["battles_drawn"]) == (0, 1, 0)
    assert by_user["carol"]["battles_drawn"] == 1
    assert by_user["erin"]["battles_lost"] == 0


def test_inactive_users_are_excluded(board_store):
    assert "dave" not in [e.user_id for e in LeaderboardAggregator(board_store).rank()]


def test_total_points_never_negative(board_store):
    frank = next(e for e in LeaderboardAggregator(board_store).rank() if e.user_id == "frank")
    assert frank.total_points == 0


def test_battles_view_ranks_battle_points_only(board_store):
    entries = LeaderboardAggregator(board_store).rank(SCOPE_BATTLES)

    assert [(e.user_id, e.total_points) for e in entries] == [("alice", 40)]


def test_limit_and_determinism(board_store):
    aggregator = LeaderboardAggregator(board_store, default_limit=3)

    assert len(aggregator.rank()) == 3
    assert len(aggregator.rank(limit=2)) == 2
    first = [e.to_dict() for e in aggregator.rank()]
    second = [e.to_dict() for e in aggregator.rank()]
    assert first == second
