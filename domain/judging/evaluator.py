"""
Test Evaluator - runs one submission against a challenge's ordered test cases.

Cases run sequentially in authored order. A wrong answer is recorded and
evaluation continues; any non-success execution outcome (compile error,
runtime error, time limit, service failure) is recorded and stops the run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from domain.records import OutcomeKind, TestCaseRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class Executor(Protocol):
    """What the judging and battle services need from an execution client."""

    def validate(self, code: str, language: str) -> Any:
        ...

    def execute(self, code: str, language: str, stdin: Optional[str] = None) -> Any:
        ...


@dataclass
class TestResult:
    __test__ = False

    index: int
    input: str
    expected_output: str
    actual_output: str
    passed: bool
    execution_time: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "input": self.input,
            "expected_output": self.expected_output,
            "actual_output": self.actual_output,
            "passed": self.passed,
            "execution_time": self.execution_time,
            "error": self.error,
        }


@dataclass
class EvaluationResult:
    results: List[TestResult] = field(default_factory=list)
    worst_case_time: float = 0.0
    overall_status: OutcomeKind = OutcomeKind.SUCCESS
    error_text: Optional[str] = None
    total: int = 0  # authored cases, attempted or not

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def all_passed(self) -> bool:
        return (
            self.overall_status == OutcomeKind.SUCCESS
            and len(self.results) == self.total
            and all(r.passed for r in self.results)
        )

    def results_as_dicts(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.results]


def outputs_match(actual: Optional[str], expected: Optional[str]) -> bool:
    """Exact match after trimming surrounding whitespace."""
    return (actual or "").strip() == (expected or "").strip()


class TestEvaluator:
    __test__ = False

    def __init__(self, executor: Executor):
        self.executor = executor

    def evaluate(self, code: str, language: str, test_cases: Sequence[TestCaseRecord]) -> EvaluationResult:
        evaluation = EvaluationResult(total=len(test_cases))

        for i, tc in enumerate(test_cases, start=1):
            outcome = self.executor.execute(code, language, tc.input)
            passed = outcome.kind == OutcomeKind.SUCCESS and outputs_match(outcome.stdout, tc.expected_output)

            evaluation.results.append(
                TestResult(
                    index=i,
                    input=tc.input,
                    expected_output=tc.expected_output,
                    actual_output=outcome.stdout,
                    passed=passed,
                    execution_time=outcome.elapsed_time,
                    error=outcome.error_text,
                )
            )
            evaluation.worst_case_time = max(evaluation.worst_case_time, outcome.elapsed_time)

            if outcome.kind != OutcomeKind.SUCCESS:
                evaluation.overall_status = outcome.kind
                evaluation.error_text = outcome.error_text
                logger.info(f"Evaluation stopped at case {i}/{len(test_cases)}: {outcome.kind.value}")
                break

        return evaluation


__all__ = ["TestEvaluator", "TestResult", "EvaluationResult", "Executor", "outputs_match"]
