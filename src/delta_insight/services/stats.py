"""Owner-scoped reporting on top of :class:`~delta_insight.persistence.StatsQuery`."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Optional

from ..exceptions import ValidationError
from ..persistence.queries import ActivityEvent, OverallStats, StatsQuery, TopIssue, TrendPoint
from .context import OwnerContext


class StatsService:
    """Caller-supplied ``days`` and ``limit`` default from config and are
    rejected outside ``1..max_trend_days`` or ``1..max_limit``."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        trend_days: int = 7,
        top_issues_limit: int = 10,
        activity_limit: int = 10,
        max_trend_days: int = 365,
        max_limit: int = 100,
    ):
        self.query = StatsQuery(conn)
        self.trend_days = trend_days
        self.top_issues_limit = top_issues_limit
        self.activity_limit = activity_limit
        self.max_trend_days = max_trend_days
        self.max_limit = max_limit

    def overall(self, ctx: OwnerContext) -> OverallStats:
        return self.query.overall(ctx.owner_id)

    def trends(
        self, ctx: OwnerContext, days: Optional[int] = None, today: Optional[date] = None
    ) -> list[TrendPoint]:
        days = _bounded("days", days, self.trend_days, self.max_trend_days)
        return self.query.issue_trends(ctx.owner_id, days=days, today=today)

    def top_issues(self, ctx: OwnerContext, limit: Optional[int] = None) -> list[TopIssue]:
        limit = _bounded("limit", limit, self.top_issues_limit, self.max_limit)
        return self.query.top_issues(ctx.owner_id, limit=limit)

    def activity(self, ctx: OwnerContext, limit: Optional[int] = None) -> list[ActivityEvent]:
        limit = _bounded("limit", limit, self.activity_limit, self.max_limit)
        return self.query.recent_activity(ctx.owner_id, limit=limit)


def _bounded(name: str, value: Optional[int], default: int, maximum: int) -> int:
    if value is None:
        return default
    if not 1 <= value <= maximum:
        raise ValidationError(f"{name} must be between 1 and {maximum}", field=name)
    return value
