"""Comparison engine: turns two unordered issue sets into per-code verdicts.

  1. Reduce each side to one representative issue per code.
  2. Take the union of codes seen on either side.
  3. Classify every code in the union.

The output is a pure function of the two issue sets. Results are sorted by
issue code so storage order is stable; the order carries no meaning.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..issues.models import Issue
from .classifier import classify
from .models import ComparisonResult
from .reducer import reduce_issues


def diff_issue_sets(
    from_issues: Iterable[Issue],
    to_issues: Iterable[Issue],
) -> list[ComparisonResult]:
    """Compare the issues of an earlier analysis against a later one."""
    from_by_code = reduce_issues(from_issues)
    to_by_code = reduce_issues(to_issues)

    all_codes = set(from_by_code) | set(to_by_code)

    results: list[ComparisonResult] = []
    for code in sorted(all_codes, key=lambda c: c.value):
        before = from_by_code.get(code)
        after = to_by_code.get(code)
        results.append(
            ComparisonResult(
                issue_code=code,
                change_type=classify(before, after),
                before_severity=before.severity if before else None,
                before_complexity=before.complexity if before else None,
                after_severity=after.severity if after else None,
                after_complexity=after.complexity if after else None,
            )
        )
    return results
