"""Strict schema for the analyzer's JSON reply.

The analyzer is untrusted: every field is validated against the closed
vocabularies before anything becomes an :class:`~delta_insight.issues.Issue`.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..exceptions import AnalyzerError
from ..issues.codes import Complexity, IssueCode, Severity
from ..issues.models import Issue


class IssuePayload(BaseModel):
    """One issue exactly as the analyzer emits it (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    issue_code: IssueCode = Field(..., alias="issueCode")
    severity: Severity
    complexity: Complexity
    function_name: Optional[str] = Field(default=None, alias="functionName")
    start_line: Optional[int] = Field(default=None, alias="startLine", ge=1)
    end_line: Optional[int] = Field(default=None, alias="endLine", ge=1)
    before_snippet: Optional[str] = Field(default=None, alias="beforeSnippet")
    after_snippet: Optional[str] = Field(default=None, alias="afterSnippet")

    @field_validator("complexity", mode="before")
    @classmethod
    def accept_display_spelling(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return Complexity.parse(v)
            except ValueError:
                return v
        return v

    @field_validator("severity", mode="before")
    @classmethod
    def lowercase_severity(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_line_range(self) -> "IssuePayload":
        if (
            self.start_line is not None
            and self.end_line is not None
            and self.end_line < self.start_line
        ):
            raise ValueError("endLine must not precede startLine")
        return self

    def to_issue(self) -> Issue:
        return Issue(
            issue_code=self.issue_code,
            severity=self.severity,
            complexity=self.complexity,
            function_name=self.function_name,
            start_line=self.start_line,
            end_line=self.end_line,
            before_snippet=self.before_snippet,
            after_snippet=self.after_snippet,
        )


class AnalyzerPayload(BaseModel):
    """Top-level analyzer reply: ``{"summary": str, "issues": [...]}``."""

    model_config = ConfigDict(extra="ignore")

    summary: str
    issues: list[IssuePayload] = Field(default_factory=list)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def decode_analysis(text: str) -> tuple[str, list[Issue]]:
    """Parse and validate an analyzer reply.

    Returns:
        ``(summary, issues)`` with issues in emission order.

    Raises:
        AnalyzerError: If the reply is not JSON or violates the schema.
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise AnalyzerError(f"reply is not valid JSON: {e}")

    try:
        payload = AnalyzerPayload.model_validate(data)
    except ValidationError as e:
        raise AnalyzerError(f"reply violates schema: {e.error_count()} error(s): {e}")

    return payload.summary, [item.to_issue() for item in payload.issues]
