import os
import sys
from datetime import datetime, timezone

import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from domain.errors import ValidationError  # noqa: E402
from domain.ranking import StreakTracker  # noqa: E402
from domain.records import ChallengeRecord, OutcomeKind, TestCaseRecord, UserRecord  # noqa: E402
from infra.repository import InMemoryRecordStore  # noqa: E402
from infra.services import ExecutionOutcome, get_language  # noqa: E402


def ok(stdout, elapsed=0.01):
    return ExecutionOutcome(stdout=stdout, error_text=None, elapsed_time=elapsed, kind=OutcomeKind.SUCCESS)


def failed(kind, error="boom", stdout=""):
    return ExecutionOutcome(stdout=stdout, error_text=error, elapsed_time=0.02, kind=kind)


def _double(stdin):
    return ok(str(int(stdin) * 2))


def _off_by_one(stdin):
    return ok(str(int(stdin) * 2 + 1))


def _partial(stdin):
    # correct except for the last authored case
    return ok("0" if stdin == "3" else str(int(stdin) * 2))


def _crash_on_two(stdin):
    if stdin == "2":
        return failed(OutcomeKind.RUNTIME_ERROR, "ZeroDivisionError")
    return ok(str(int(stdin) * 2))


SOLUTIONS = {
    "double": _double,
    "off_by_one": _off_by_one,
    "partial": _partial,
    "crash_on_two": _crash_on_two,
    "syntax_error": lambda stdin: failed(OutcomeKind.COMPILATION_ERROR, "SyntaxError"),
    "offline": lambda stdin: failed(OutcomeKind.SERVICE_UNAVAILABLE, "connection refused"),
}


class FakeExecutor:
    """Stands in for ExecutionClient: the submitted code names a canned solution."""

    def __init__(self, solutions=None):
        self.solutions = dict(SOLUTIONS if solutions is None else solutions)
        self.calls = []

    def validate(self, code, language):
        if not code:
            raise ValidationError("code is required")
        runtime = get_language(language)
        if runtime is None:
            raise ValidationError("Unsupported programming language")
        return runtime

    def execute(self, code, language, stdin=None):
        self.validate(code, language)
        self.calls.append((code, language, stdin))
        return self.solutions[code](stdin)


def fixed_clock(moment):
    return lambda: moment


NOON_UTC = datetime(2024, 3, 10, 6, 30, tzinfo=timezone.utc)  # 12:00 in Asia/Kolkata

DOUBLE_CASES = [
    TestCaseRecord(input="1", expected_output="2"),
    TestCaseRecord(input="2", expected_output="4"),
    TestCaseRecord(input="3", expected_output="6"),
]


def seed(store):
    store.add_user(UserRecord(id="alice", username="alice"))
    store.add_user(UserRecord(id="bob", username="bob"))
    store.add_user(UserRecord(id="carol", username="carol"))
    store.add_challenge(
        ChallengeRecord(id="double", title="Double It", difficulty="medium", test_cases=list(DOUBLE_CASES))
    )
    return store


@pytest.fixture
def store():
    return seed(InMemoryRecordStore())


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def streaks(store):
    return StreakTracker(store, tz_name="Asia/Kolkata", clock=fixed_clock(NOON_UTC))
