"""Owner-scoped statistics over persisted analyses and comparisons.

These are read-only roll-ups for the ``stats`` CLI command and the
``/api/stats`` endpoints. Every query joins back to ``projects.owner_id`` so
one owner's numbers never include another owner's rows.
"""

import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from ..comparison.models import ChangeType


@dataclass
class OverallStats:
    """Totals for one owner plus the change-type breakdown of all results."""

    total_projects: int
    total_versions: int
    total_issues: int
    total_comparisons: int
    breakdown: dict[str, int] = field(default_factory=dict)


@dataclass
class TrendPoint:
    """Issues produced on one UTC calendar day."""

    date: str
    issues: int


@dataclass
class TopIssue:
    issue_code: str
    count: int


@dataclass
class ActivityEvent:
    """One entry of the activity feed (an analysis or a comparison)."""

    type: str  # "analysis" | "comparison"
    id: str
    project_id: str
    project_name: str
    created_at: str
    version_label: Optional[str] = None
    issue_count: Optional[int] = None
    result_count: Optional[int] = None


class StatsQuery:
    """Read-only aggregate queries against the review database.

    Parameters
    ----------
    conn:
        An open ``sqlite3.Connection`` with ``row_factory = sqlite3.Row``
        (as returned by ``ReviewDB.connect()``).
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ── totals ────────────────────────────────────────────────────────

    def overall(self, owner_id: str) -> OverallStats:
        """Counts of projects, versions, issues and comparisons for *owner_id*.

        ``breakdown`` always holds all three change types, zero when absent.
        """
        projects = self._scalar(
            "SELECT COUNT(*) FROM projects WHERE owner_id = ?", owner_id
        )
        versions = self._scalar(
            """
            SELECT COUNT(*)
            FROM code_versions v
            JOIN projects p ON p.id = v.project_id
            WHERE p.owner_id = ?
            """,
            owner_id,
        )
        issues = self._scalar(
            """
            SELECT COUNT(*)
            FROM issues i
            JOIN analyses a ON a.id = i.analysis_id
            JOIN code_versions v ON v.id = a.code_version_id
            JOIN projects p ON p.id = v.project_id
            WHERE p.owner_id = ?
            """,
            owner_id,
        )
        comparisons = self._scalar(
            """
            SELECT COUNT(*)
            FROM comparisons c
            JOIN projects p ON p.id = c.project_id
            WHERE p.owner_id = ?
            """,
            owner_id,
        )

        breakdown = {ct.value: 0 for ct in ChangeType}
        rows = self.conn.execute(
            """
            SELECT r.change_type, COUNT(*) AS n
            FROM comparison_results r
            JOIN comparisons c ON c.id = r.comparison_id
            JOIN projects p ON p.id = c.project_id
            WHERE p.owner_id = ?
            GROUP BY r.change_type
            """,
            (owner_id,),
        ).fetchall()
        for r in rows:
            breakdown[r["change_type"]] = r["n"]

        return OverallStats(
            total_projects=projects,
            total_versions=versions,
            total_issues=issues,
            total_comparisons=comparisons,
            breakdown=breakdown,
        )

    # ── trend ─────────────────────────────────────────────────────────

    def issue_trends(
        self, owner_id: str, days: int = 7, today: Optional[date] = None
    ) -> list[TrendPoint]:
        """Issues produced per UTC day over the last *days* days.

        An issue is dated by the analysis that produced it. Returns exactly
        *days* points, consecutive, oldest first, ending on *today* (defaults
        to the current UTC date); days without analyses count zero.
        """
        if days < 1:
            return []
        end = today or datetime.now(timezone.utc).date()
        start = end - timedelta(days=days - 1)

        rows = self.conn.execute(
            """
            SELECT substr(a.created_at, 1, 10) AS day, COUNT(i.id) AS n
            FROM analyses a
            JOIN code_versions v ON v.id = a.code_version_id
            JOIN projects p ON p.id = v.project_id
            JOIN issues i ON i.analysis_id = a.id
            WHERE p.owner_id = ?
              AND substr(a.created_at, 1, 10) BETWEEN ? AND ?
            GROUP BY day
            """,
            (owner_id, start.isoformat(), end.isoformat()),
        ).fetchall()
        counts = {r["day"]: r["n"] for r in rows}

        points = []
        for offset in range(days):
            day = (start + timedelta(days=offset)).isoformat()
            points.append(TrendPoint(date=day, issues=counts.get(day, 0)))
        return points

    # ── top issues ────────────────────────────────────────────────────

    def top_issues(self, owner_id: str, limit: int = 10) -> list[TopIssue]:
        """Most frequent issue codes across all of *owner_id*'s analyses.

        Ordered by count descending; equal counts keep first-seen order
        (the code whose earliest stored issue came first wins).
        """
        rows = self.conn.execute(
            """
            SELECT i.issue_code, COUNT(*) AS n, MIN(i.id) AS first_seen
            FROM issues i
            JOIN analyses a ON a.id = i.analysis_id
            JOIN code_versions v ON v.id = a.code_version_id
            JOIN projects p ON p.id = v.project_id
            WHERE p.owner_id = ?
            GROUP BY i.issue_code
            ORDER BY n DESC, first_seen ASC
            LIMIT ?
            """,
            (owner_id, limit),
        ).fetchall()
        return [TopIssue(issue_code=r["issue_code"], count=r["n"]) for r in rows]

    # ── activity feed ─────────────────────────────────────────────────

    def recent_activity(self, owner_id: str, limit: int = 10) -> list[ActivityEvent]:
        """Latest analyses and comparisons merged into one feed, newest first."""
        analysis_rows = self.conn.execute(
            """
            SELECT a.id, a.created_at, v.version_label, p.id AS project_id,
                   p.name AS project_name,
                   (SELECT COUNT(*) FROM issues i WHERE i.analysis_id = a.id) AS issue_count
            FROM analyses a
            JOIN code_versions v ON v.id = a.code_version_id
            JOIN projects p ON p.id = v.project_id
            WHERE p.owner_id = ?
            ORDER BY a.created_at DESC
            LIMIT ?
            """,
            (owner_id, limit),
        ).fetchall()
        comparison_rows = self.conn.execute(
            """
            SELECT c.id, c.created_at, p.id AS project_id, p.name AS project_name,
                   (SELECT COUNT(*) FROM comparison_results r
                    WHERE r.comparison_id = c.id) AS result_count
            FROM comparisons c
            JOIN projects p ON p.id = c.project_id
            WHERE p.owner_id = ?
            ORDER BY c.created_at DESC
            LIMIT ?
            """,
            (owner_id, limit),
        ).fetchall()

        events = [
            ActivityEvent(
                type="analysis",
                id=r["id"],
                project_id=r["project_id"],
                project_name=r["project_name"],
                created_at=r["created_at"],
                version_label=r["version_label"],
                issue_count=r["issue_count"],
            )
            for r in analysis_rows
        ]
        events.extend(
            ActivityEvent(
                type="comparison",
                id=r["id"],
                project_id=r["project_id"],
                project_name=r["project_name"],
                created_at=r["created_at"],
                result_count=r["result_count"],
            )
            for r in comparison_rows
        )
        events.sort(key=lambda e: e.created_at, reverse=True)
        return events[:limit]

    # ── helpers ───────────────────────────────────────────────────────

    def _scalar(self, sql: str, *params) -> int:
        row = self.conn.execute(sql, params).fetchone()
        return row[0] if row is not None else 0
