"""Issue vocabulary and the Issue record."""

from .codes import (
    CATEGORY_MAP,
    ISSUE_DESCRIPTIONS,
    Complexity,
    IssueCategory,
    IssueCode,
    Severity,
)
from .models import Issue

__all__ = [
    "CATEGORY_MAP",
    "ISSUE_DESCRIPTIONS",
    "Complexity",
    "Issue",
    "IssueCategory",
    "IssueCode",
    "Severity",
]
