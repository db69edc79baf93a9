"""Issue record: one defect instance reported by the analyzer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..exceptions import InvalidIssueError, ValidationError
from .codes import Complexity, IssueCode, Severity


@dataclass(frozen=True)
class Issue:
    """One defect instance inside an analysis.

    Snippets are advisory (the analyzer is asked for at most ~5 lines) and
    are not validated.
    """

    issue_code: IssueCode
    severity: Severity
    complexity: Complexity
    function_name: Optional[str] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    before_snippet: Optional[str] = None
    after_snippet: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.issue_code, IssueCode):
            raise InvalidIssueError("issueCode", self.issue_code)
        if not isinstance(self.severity, Severity):
            raise InvalidIssueError("severity", self.severity)
        if not isinstance(self.complexity, Complexity):
            raise InvalidIssueError("complexity", self.complexity)
        for name in ("start_line", "end_line"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValidationError(f"{name} must be a positive integer", field=name)
        if (
            self.start_line is not None
            and self.end_line is not None
            and self.end_line < self.start_line
        ):
            raise ValidationError("end_line must not precede start_line", field="end_line")

    @classmethod
    def from_values(
        cls,
        issue_code: str,
        severity: str,
        complexity: str,
        **optional: Any,
    ) -> "Issue":
        """Build an issue from raw strings, rejecting anything outside the vocabularies."""
        try:
            code = IssueCode(issue_code)
        except ValueError:
            raise InvalidIssueError("issueCode", issue_code)
        try:
            sev = Severity(severity)
        except ValueError:
            raise InvalidIssueError("severity", severity)
        try:
            cplx = Complexity.parse(complexity)
        except (ValueError, AttributeError):
            raise InvalidIssueError("complexity", complexity)
        return cls(issue_code=code, severity=sev, complexity=cplx, **optional)
