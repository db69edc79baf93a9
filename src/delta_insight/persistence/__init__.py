"""SQLite persistence for projects, code versions, analyses and comparisons."""

from .database import ReviewDB, retry_locked, transaction
from .models import Analysis, AnalysisStatus, CodeVersion, Project
from .queries import ActivityEvent, OverallStats, StatsQuery, TopIssue, TrendPoint

__all__ = [
    "ActivityEvent",
    "Analysis",
    "AnalysisStatus",
    "CodeVersion",
    "OverallStats",
    "Project",
    "ReviewDB",
    "StatsQuery",
    "TopIssue",
    "TrendPoint",
    "retry_locked",
    "transaction",
]
