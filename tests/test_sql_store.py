from datetime import date, datetime, timedelta

import pytest
from conftest import FakeExecutor, NOON_UTC, fixed_clock
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db import Base, make_session_factory
from domain import models
from domain.judging import SubmissionScorer
from domain.ranking import StreakTracker
from domain.records import BattleRecord, BattleStatus, SubmissionRecord, SubmissionStatus
from infra.repository import SqlRecordStore


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = make_session_factory(engine)

    db = factory()
    db.add_all([
        models.User(id="alice", username="alice"),
        models.User(id="bob", username="bob"),
        models.User(id="ghost", username="ghost", is_active=False),
    ])
    db.add(
        models.Challenge(
            id="double",
            title="Double It",
            difficulty="medium",
            testcases=[
                models.TestCase(position=2, input="3", expected_output="6"),
                models.TestCase(position=0, input="1", expected_output="2"),
                models.TestCase(position=1, input="2", expected_output="4"),
            ],
        )
    )
    db.add_all([
        models.Challenge(id="daily-old", title="Old daily", is_daily=True, publish_date=date(2024, 3, 1)),
        models.Challenge(id="daily-new", title="New daily", is_daily=True, publish_date=date(2024, 3, 8)),
    ])
    db.commit()
    db.close()
    yield factory
    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlRecordStore(session_factory)


def _submission(user_id, score, status=SubmissionStatus.ACCEPTED, battle_id=None):
    return SubmissionRecord(
        user_id=user_id,
        challenge_id="double",
        battle_id=battle_id,
        language="python",
        code="...",
        status=status,
        score=score,
    )


def test_challenge_test_cases_keep_authored_order(sql_store):
    challenge = sql_store.get_challenge("double")

    assert [tc.input for tc in challenge.test_cases] == ["1", "2", "3"]
    assert challenge.point_value == 50
    assert sql_store.get_challenge("missing") is None


def test_daily_challenge_falls_back_to_latest(sql_store):
    assert sql_store.get_daily_challenge(date(2024, 3, 1)).id == "daily-old"
    assert sql_store.get_daily_challenge(date(2024, 3, 10)).id == "daily-new"


def test_list_users_skips_inactive(sql_store):
    assert [u.id for u in sql_store.list_users()] == ["alice", "bob"]
    assert len(sql_store.list_users(active_only=False)) == 3
    assert sql_store.get_user_by_username("bob").id == "bob"


def test_find_best_score_separates_challenge_and_battle_paths(sql_store):
    sql_store.insert_battle(BattleRecord(id="b1", title="Duel", creator_id="alice", status=BattleStatus.IN_PROGRESS))
    assert sql_store.find_best_score("alice", challenge_id="double") is None

    sql_store.insert_submission(_submission("alice", 0, SubmissionStatus.WRONG_ANSWER))
    sql_store.insert_submission(_submission("alice", 33, SubmissionStatus.WRONG_ANSWER, battle_id="b1"))
    assert sql_store.find_best_score("alice", challenge_id="double") is None
    assert sql_store.find_best_score("alice", battle_id="b1") == 33

    sql_store.insert_submission(_submission("alice", 50))
    assert sql_store.find_best_score("alice", challenge_id="double") == 50
    assert sql_store.find_best_score("bob", challenge_id="double") is None


def test_counters_and_activity(sql_store):
    sql_store.increment_user_counters("alice", {"points": 50, "challenges_solved": 1})
    sql_store.increment_user_counters("alice", {"points": 0, "battles_won": 1})
    sql_store.set_user_activity("alice", 3, datetime(2024, 3, 10, 6, 30))

    user = sql_store.get_user("alice")
    assert (user.points, user.challenges_solved, user.battles_won) == (50, 1, 1)
    assert user.streak_days == 3

    with pytest.raises(ValueError):
        sql_store.increment_user_counters("alice", {"streak_days": 1})


def test_compare_and_set_only_succeeds_from_expected_status(sql_store):
    battle = sql_store.insert_battle(BattleRecord(id="", title="Open", creator_id="alice", status=BattleStatus.WAITING))
    assert battle.id

    assert sql_store.compare_and_set_battle_status(
        battle.id, BattleStatus.WAITING, BattleStatus.IN_PROGRESS, {"opponent_id": "bob"}
    )
    assert not sql_store.compare_and_set_battle_status(
        battle.id, BattleStatus.WAITING, BattleStatus.IN_PROGRESS, {"opponent_id": "alice"}
    )

    stored = sql_store.get_battle(battle.id)
    assert stored.status == BattleStatus.IN_PROGRESS
    assert stored.opponent_id == "bob"


def test_list_battles_newest_first(sql_store):
    base = datetime(2024, 3, 10, 8, 0)
    for i, status in enumerate([BattleStatus.WAITING, BattleStatus.COMPLETED, BattleStatus.WAITING]):
        sql_store.insert_battle(
            BattleRecord(id=f"b{i}", title=f"Battle {i}", creator_id="alice", status=status,
                         created_at=base + timedelta(minutes=i))
        )

    assert [b.id for b in sql_store.list_battles()] == ["b2", "b1", "b0"]
    assert [b.id for b in sql_store.list_battles([BattleStatus.WAITING])] == ["b2", "b0"]


def test_user_scope_rolls_back_on_error(sql_store):
    with pytest.raises(RuntimeError):
        with sql_store.user_scope("alice"):
            sql_store.insert_submission(_submission("alice", 50))
            sql_store.increment_user_counters("alice", {"points": 50})
            raise RuntimeError("boom")

    assert sql_store.list_submissions(["alice"]) == []
    assert sql_store.get_user("alice").points == 0


def test_latest_submission(sql_store):
    first = sql_store.insert_submission(
        SubmissionRecord(user_id="alice", challenge_id="double", language="python", code="a",
                         status=SubmissionStatus.WRONG_ANSWER, score=0,
                         submitted_at=datetime(2024, 3, 10, 8, 0))
    )
    second = sql_store.insert_submission(
        SubmissionRecord(user_id="alice", challenge_id="double", language="python", code="b",
                         status=SubmissionStatus.ACCEPTED, score=50,
                         submitted_at=datetime(2024, 3, 10, 9, 0))
    )

    latest = sql_store.latest_submission("alice", challenge_id="double")
    assert latest.id == second.id != first.id
    assert latest.code == "b"
    assert sql_store.latest_submission("bob", challenge_id="double") is None


def test_scorer_end_to_end_on_sql(sql_store):
    streaks = StreakTracker(sql_store, tz_name="Asia/Kolkata", clock=fixed_clock(NOON_UTC))
    scorer = SubmissionScorer(sql_store, FakeExecutor(), streaks)

    submission, outcome = scorer.submit("alice", "double", "python", "double")
    scorer.submit("alice", "double", "python", "double")

    assert submission.status == SubmissionStatus.ACCEPTED
    assert outcome.points_delta == 50
    user = sql_store.get_user("alice")
    assert (user.points, user.challenges_solved, user.streak_days) == (50, 1, 1)
    assert len(sql_store.list_submissions(["alice"])) == 2


def test_store_generated_timestamps_are_utc_aware(sql_store):
    submission = sql_store.insert_submission(_submission("alice", 50))
    battle = sql_store.insert_battle(BattleRecord(id="", title="Aware", creator_id="alice", status=BattleStatus.WAITING))

    assert submission.submitted_at.utcoffset() == timedelta(0)
    assert battle.created_at.utcoffset() == timedelta(0)
    assert battle.updated_at.utcoffset() == timedelta(0)


def test_battle_scope_shares_one_transaction(sql_store):
    battle = sql_store.insert_battle(BattleRecord(id="", title="Scoped", creator_id="alice", status=BattleStatus.IN_PROGRESS))

    with pytest.raises(RuntimeError):
        with sql_store.battle_scope(battle.id):
            sql_store.insert_submission(_submission("alice", 50, battle_id=battle.id))
            assert sql_store.compare_and_set_battle_status(battle.id, BattleStatus.IN_PROGRESS, BattleStatus.COMPLETED)
            assert sql_store.get_battle(battle.id).status == BattleStatus.COMPLETED
            raise RuntimeError("boom")

    assert sql_store.get_battle(battle.id).status == BattleStatus.IN_PROGRESS
    assert sql_store.find_best_score("alice", battle_id=battle.id) is None
