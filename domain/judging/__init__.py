"""Judging: test evaluation and submission scoring."""

from .evaluator import EvaluationResult, TestEvaluator, TestResult
from .scorer import ScoreOutcome, SubmissionScorer, derive_status

__all__ = [
    'TestEvaluator',
    'TestResult',
    'EvaluationResult',
    'SubmissionScorer',
    'ScoreOutcome',
    'derive_status',
]
