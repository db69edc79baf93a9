"""Deterministic comparison of two analyses."""

from .classifier import classify
from .engine import diff_issue_sets
from .models import ChangeType, CompareOutcome, Comparison, ComparisonResult, Explanation
from .ranking import COMPLEXITY_RANK, SEVERITY_RANK, complexity_rank, severity_rank
from .reducer import reduce_issues

__all__ = [
    "COMPLEXITY_RANK",
    "SEVERITY_RANK",
    "ChangeType",
    "CompareOutcome",
    "Comparison",
    "ComparisonResult",
    "Explanation",
    "classify",
    "complexity_rank",
    "diff_issue_sets",
    "reduce_issues",
    "severity_rank",
]
