"""Data models for persisted projects, code versions and analyses.

All fields are plain values or collections of plain values so rows map
onto them without ORM machinery.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..issues.models import Issue


class AnalysisStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"  # analyzer unavailable or reply rejected; issues are empty


@dataclass(frozen=True)
class Project:
    id: str
    owner_id: str
    name: str
    created_at: str
    description: Optional[str] = None


@dataclass
class Analysis:
    """Structured analyzer output for one code version.

    Immutable once stored. ``issues`` keeps the analyzer's emission order.
    """

    id: str
    code_version_id: str
    summary: str
    created_at: str
    status: AnalysisStatus = AnalysisStatus.COMPLETED
    failure_reason: Optional[str] = None
    issues: list[Issue] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status is AnalysisStatus.FAILED


@dataclass
class CodeVersion:
    """One uploaded snapshot of a project's code (metadata only)."""

    id: str
    project_id: str
    uploaded_at: str
    version_label: Optional[str] = None
    analysis: Optional[Analysis] = None
