"""Rank tables for the two ordinal issue scales (lower is better).

These ranks are the only numeric semantics in the system; comparison logic
only ever looks at the sign of a rank difference.
"""

from __future__ import annotations

from ..exceptions import InvalidIssueError
from ..issues.codes import Complexity, Severity

SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
}

COMPLEXITY_RANK: dict[Complexity, int] = {
    Complexity.O_1: 1,
    Complexity.O_N: 2,
    Complexity.O_N2: 3,
}


def severity_rank(severity: Severity) -> int:
    """Rank of *severity*; raises ``InvalidIssueError`` for anything off the scale."""
    try:
        return SEVERITY_RANK[severity]
    except (KeyError, TypeError):
        raise InvalidIssueError("severity", severity)


def complexity_rank(complexity: Complexity) -> int:
    """Rank of *complexity*; raises ``InvalidIssueError`` for anything off the scale."""
    try:
        return COMPLEXITY_RANK[complexity]
    except (KeyError, TypeError):
        raise InvalidIssueError("complexity", complexity)
