"""Deterministic per-issue-code verdict between two analyses.

Decision order:
  1. present before, absent after  -> IMPROVED
  2. absent before, present after  -> WORSENED
  3. present on both sides: severity rank decides; only on a severity tie
     does complexity rank decide; equal on both -> UNCHANGED
  4. absent on both sides          -> UNCHANGED

The two ranks are never combined numerically.
"""

from __future__ import annotations

from typing import Optional

from ..issues.models import Issue
from .models import ChangeType
from .ranking import complexity_rank, severity_rank


def classify(from_issue: Optional[Issue], to_issue: Optional[Issue]) -> ChangeType:
    """Classify the change of one issue code between two reduced analyses."""
    if from_issue is not None and to_issue is None:
        return ChangeType.IMPROVED

    if from_issue is None and to_issue is not None:
        return ChangeType.WORSENED

    if from_issue is not None and to_issue is not None:
        severity_delta = severity_rank(to_issue.severity) - severity_rank(from_issue.severity)
        if severity_delta < 0:
            return ChangeType.IMPROVED
        if severity_delta > 0:
            return ChangeType.WORSENED

        complexity_delta = complexity_rank(to_issue.complexity) - complexity_rank(
            from_issue.complexity
        )
        if complexity_delta < 0:
            return ChangeType.IMPROVED
        if complexity_delta > 0:
            return ChangeType.WORSENED
        return ChangeType.UNCHANGED

    # Unreachable from diff_issue_sets, which only asks about observed codes.
    return ChangeType.UNCHANGED
