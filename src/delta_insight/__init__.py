"""
Delta Insight - deterministic comparison of analyzed code versions

Users upload successive versions of a code snippet into a project. Each
version is analyzed by an external analyzer into a list of coded issues, and
any two analyzed versions can be compared issue code by issue code into
IMPROVED / UNCHANGED / WORSENED verdicts. Source code is never stored.
"""

__version__ = "0.1.0"

from .comparison import ChangeType, ComparisonResult, classify, diff_issue_sets, reduce_issues
from .issues import Complexity, Issue, IssueCode, Severity

__all__ = [
    "diff_issue_sets",  # Pure comparison entry point
    "reduce_issues",
    "classify",
    "ChangeType",
    "ComparisonResult",
    "Issue",
    "IssueCode",
    "Severity",
    "Complexity",
]
