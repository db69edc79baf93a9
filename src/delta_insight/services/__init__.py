"""Application services: every operation takes an explicit :class:`OwnerContext`."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from ..ai.analyzer import CodeAnalyzer
from ..ai.explainer import ComparisonExplainer
from ..config import ServiceConfig
from ..persistence.database import ReviewDB
from .comparisons import ComparisonOrchestrator
from .context import OwnerContext
from .projects import ProjectService
from .stats import StatsService
from .versions import VersionService


@dataclass
class Services:
    """All services bound to one database connection."""

    projects: ProjectService
    versions: VersionService
    comparisons: ComparisonOrchestrator
    stats: StatsService


@contextmanager
def open_services(
    config: ServiceConfig,
    analyzer: Optional[CodeAnalyzer] = None,
    explainer: Optional[ComparisonExplainer] = None,
) -> Iterator[Services]:
    """Open the review database and yield services bound to it.

    The connection is closed on exit. SQLite connections must stay on the
    thread that opened them, so open and use the bundle on one thread.
    """
    with ReviewDB(config.database_path) as db:
        retries = config.persistence_retries
        yield Services(
            projects=ProjectService(db.conn, retries),
            versions=VersionService(
                db.conn,
                analyzer=analyzer,
                max_source_chars=config.max_source_chars,
                persistence_retries=retries,
            ),
            comparisons=ComparisonOrchestrator(
                db.conn, explainer=explainer, persistence_retries=retries
            ),
            stats=StatsService(
                db.conn,
                trend_days=config.trend_days,
                top_issues_limit=config.top_issues_limit,
                activity_limit=config.activity_limit,
                max_trend_days=config.max_trend_days,
                max_limit=config.max_list_limit,
            ),
        )


__all__ = [
    "ComparisonOrchestrator",
    "OwnerContext",
    "ProjectService",
    "Services",
    "StatsService",
    "VersionService",
    "open_services",
]
