"""Collapse duplicate issue codes within one analysis to a single representative."""

from __future__ import annotations

from collections.abc import Iterable

from ..issues.codes import IssueCode
from ..issues.models import Issue
from .ranking import severity_rank


def reduce_issues(issues: Iterable[Issue]) -> dict[IssueCode, Issue]:
    """Map each issue code to its worst instance.

    A version is judged by the most severe occurrence of each issue type.
    Only a strictly higher severity replaces the current representative, so
    on a severity tie the first issue in iteration order is kept. Complexity
    plays no part in the choice. Stored analyses are read back in insertion
    order, which makes the result reproducible for them.
    """
    reduced: dict[IssueCode, Issue] = {}
    for issue in issues:
        current = reduced.get(issue.issue_code)
        if current is None or severity_rank(issue.severity) > severity_rank(current.severity):
            reduced[issue.issue_code] = issue
    return reduced
