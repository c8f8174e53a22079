from conftest import DOUBLE_CASES, FakeExecutor, ok

from domain.judging import TestEvaluator
from domain.judging.evaluator import Executor, outputs_match
from domain.records import OutcomeKind
from infra.services import ExecutionClient


def test_all_cases_pass():
    evaluation = TestEvaluator(FakeExecutor()).evaluate("double", "python", DOUBLE_CASES)

    assert evaluation.all_passed
    assert evaluation.passed_count == 3
    assert evaluation.overall_status == OutcomeKind.SUCCESS
    assert [r.index for r in evaluation.results] == [1, 2, 3]


def test_wrong_answers_do_not_stop_evaluation():
    executor = FakeExecutor()
    evaluation = TestEvaluator(executor).evaluate("partial", "python", DOUBLE_CASES)

    assert len(evaluation.results) == 3
    assert len(executor.calls) == 3
    assert [r.passed for r in evaluation.results] == [True, True, False]
    assert evaluation.overall_status == OutcomeKind.SUCCESS
    assert not evaluation.all_passed


def test_execution_failure_stops_after_failing_case():
    executor = FakeExecutor()
    evaluation = TestEvaluator(executor).evaluate("crash_on_two", "python", DOUBLE_CASES)

    # case 3 is never attempted
    assert len(evaluation.results) == 2
    assert len(executor.calls) == 2
    assert evaluation.results[0].passed
    assert not evaluation.results[1].passed
    assert evaluation.results[1].error == "ZeroDivisionError"
    assert evaluation.overall_status == OutcomeKind.RUNTIME_ERROR
    assert evaluation.error_text == "ZeroDivisionError"
    assert evaluation.total == 3
    assert not evaluation.all_passed


def test_worst_case_time_is_the_max_over_cases():
    timings = {"1": 0.1, "2": 0.7, "3": 0.3}
    executor = FakeExecutor({
        "timed": lambda stdin: ok(str(int(stdin) * 2), timings[stdin]),
    })
    evaluation = TestEvaluator(executor).evaluate("timed", "python", DOUBLE_CASES)
    assert evaluation.worst_case_time == 0.7


def test_empty_case_list_counts_as_all_passed():
    evaluation = TestEvaluator(FakeExecutor()).evaluate("double", "python", [])
    assert evaluation.results == []
    assert evaluation.all_passed


def test_outputs_match_trims_surrounding_whitespace_only():
    assert outputs_match("4\n", "4")
    assert outputs_match("  a b  ", "a b")
    assert not outputs_match("a  b", "a b")
    assert not outputs_match("4", "5")


def test_executor_protocol_covers_validation_and_execution():
    client = ExecutionClient(base_url="http://exec.test")
    try:
        assert isinstance(client, Executor)
    finally:
        client.close()
    assert isinstance(FakeExecutor(), Executor)

    class RunOnly:
        def execute(self, code, language, stdin=None):
            return ok("")

    assert not isinstance(RunOnly(), Executor)
