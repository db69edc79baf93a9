"""Data models for comparisons between two analyses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..issues.codes import Complexity, IssueCode, Severity


class ChangeType(str, Enum):
    IMPROVED = "IMPROVED"
    UNCHANGED = "UNCHANGED"
    WORSENED = "WORSENED"


@dataclass(frozen=True)
class ComparisonResult:
    """Verdict for one issue code.

    The before/after fields are ``None`` for the side that did not report
    the issue; they are never filled with placeholders.
    """

    issue_code: IssueCode
    change_type: ChangeType
    before_severity: Optional[Severity] = None
    before_complexity: Optional[Complexity] = None
    after_severity: Optional[Severity] = None
    after_complexity: Optional[Complexity] = None


@dataclass(frozen=True)
class Explanation:
    """Natural-language annotation attached to a comparison, at most one each."""

    id: str
    comparison_id: str
    text: str
    created_at: str


@dataclass
class Comparison:
    """Persisted comparison, keyed by the ordered pair of analysis ids."""

    id: str
    project_id: str
    from_analysis_id: str
    to_analysis_id: str
    created_at: str
    results: list[ComparisonResult] = field(default_factory=list)
    explanation: Optional[Explanation] = None

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_analysis_id, self.to_analysis_id)

    def count(self, change_type: ChangeType) -> int:
        return sum(1 for r in self.results if r.change_type is change_type)


@dataclass(frozen=True)
class CompareOutcome:
    """Result of a compare request; ``cached`` is True when an existing row was returned."""

    comparison: Comparison
    cached: bool
