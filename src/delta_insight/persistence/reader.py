"""Read projects, versions, analyses and comparisons back from the review database.

Loaders return ``None`` for missing rows; ownership and existence policy is
decided by the service layer.
"""

import sqlite3
from typing import Optional

from ..comparison.models import ChangeType, Comparison, ComparisonResult, Explanation
from ..issues.codes import Complexity, IssueCode, Severity
from ..issues.models import Issue
from .models import Analysis, AnalysisStatus, CodeVersion, Project

# ── projects ─────────────────────────────────────────────────────────


def load_project(
    conn: sqlite3.Connection, project_id: str, owner_id: Optional[str] = None
) -> Optional[Project]:
    """Load a project, optionally only if *owner_id* owns it."""
    if owner_id is None:
        row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
    else:
        row = conn.execute(
            "SELECT * FROM projects WHERE id = ? AND owner_id = ?",
            (project_id, owner_id),
        ).fetchone()
    return _project(row) if row is not None else None


def list_projects(conn: sqlite3.Connection, owner_id: str) -> list[Project]:
    """All projects of *owner_id*, newest first."""
    rows = conn.execute(
        "SELECT * FROM projects WHERE owner_id = ? ORDER BY created_at DESC, rowid DESC",
        (owner_id,),
    ).fetchall()
    return [_project(r) for r in rows]


# ── code versions ────────────────────────────────────────────────────


def load_code_version(conn: sqlite3.Connection, version_id: str) -> Optional[CodeVersion]:
    """Load a version together with its analysis (if any)."""
    row = conn.execute("SELECT * FROM code_versions WHERE id = ?", (version_id,)).fetchone()
    if row is None:
        return None
    version = _code_version(row)
    version.analysis = load_analysis_for_version(conn, version.id)
    return version


def list_code_versions(conn: sqlite3.Connection, project_id: str) -> list[CodeVersion]:
    """All versions of a project with their analyses, newest upload first."""
    rows = conn.execute(
        """
        SELECT * FROM code_versions
        WHERE project_id = ?
        ORDER BY uploaded_at DESC, rowid DESC
        """,
        (project_id,),
    ).fetchall()
    versions = [_code_version(r) for r in rows]
    for version in versions:
        version.analysis = load_analysis_for_version(conn, version.id)
    return versions


def load_version_owner(conn: sqlite3.Connection, version_id: str) -> Optional[str]:
    """Owner id of the project a version belongs to."""
    row = conn.execute(
        """
        SELECT p.owner_id
        FROM code_versions v
        JOIN projects p ON p.id = v.project_id
        WHERE v.id = ?
        """,
        (version_id,),
    ).fetchone()
    return row["owner_id"] if row is not None else None


# ── analyses ─────────────────────────────────────────────────────────


def load_analysis(conn: sqlite3.Connection, analysis_id: str) -> Optional[Analysis]:
    """Load an analysis and its issues in insertion order."""
    row = conn.execute("SELECT * FROM analyses WHERE id = ?", (analysis_id,)).fetchone()
    return _hydrate_analysis(conn, row) if row is not None else None


def load_analysis_for_version(conn: sqlite3.Connection, version_id: str) -> Optional[Analysis]:
    row = conn.execute(
        "SELECT * FROM analyses WHERE code_version_id = ?", (version_id,)
    ).fetchone()
    return _hydrate_analysis(conn, row) if row is not None else None


def load_analysis_project_id(conn: sqlite3.Connection, analysis_id: str) -> Optional[str]:
    """Project id reachable from an analysis through its code version."""
    row = conn.execute(
        """
        SELECT v.project_id
        FROM analyses a
        JOIN code_versions v ON v.id = a.code_version_id
        WHERE a.id = ?
        """,
        (analysis_id,),
    ).fetchone()
    return row["project_id"] if row is not None else None


def load_issues(conn: sqlite3.Connection, analysis_id: str) -> list[Issue]:
    """Issues of one analysis, in the order the analyzer emitted them.

    Raises ``InvalidIssueError`` if a stored row holds a value outside the
    issue vocabularies.
    """
    rows = conn.execute(
        "SELECT * FROM issues WHERE analysis_id = ? ORDER BY position ASC, id ASC",
        (analysis_id,),
    ).fetchall()
    return [
        Issue.from_values(
            r["issue_code"],
            r["severity"],
            r["complexity"],
            function_name=r["function_name"],
            start_line=r["start_line"],
            end_line=r["end_line"],
            before_snippet=r["before_snippet"],
            after_snippet=r["after_snippet"],
        )
        for r in rows
    ]


# ── comparisons ──────────────────────────────────────────────────────


def load_comparison(conn: sqlite3.Connection, comparison_id: str) -> Optional[Comparison]:
    """Load a comparison with its results and explanation."""
    row = conn.execute("SELECT * FROM comparisons WHERE id = ?", (comparison_id,)).fetchone()
    return _hydrate_comparison(conn, row) if row is not None else None


def find_comparison_by_pair(
    conn: sqlite3.Connection, from_analysis_id: str, to_analysis_id: str
) -> Optional[Comparison]:
    """Look up the comparison for the exact ordered pair (no swapping).

    The pair is UNIQUE in the schema; ordering by creation still makes the
    first committed row win should that ever be relaxed.
    """
    row = conn.execute(
        """
        SELECT * FROM comparisons
        WHERE from_analysis_id = ? AND to_analysis_id = ?
        ORDER BY created_at ASC, rowid ASC
        LIMIT 1
        """,
        (from_analysis_id, to_analysis_id),
    ).fetchone()
    return _hydrate_comparison(conn, row) if row is not None else None


def list_comparisons(conn: sqlite3.Connection, project_id: str) -> list[Comparison]:
    """All comparisons of a project, newest first."""
    rows = conn.execute(
        """
        SELECT * FROM comparisons
        WHERE project_id = ?
        ORDER BY created_at DESC, rowid DESC
        """,
        (project_id,),
    ).fetchall()
    return [_hydrate_comparison(conn, r) for r in rows]


def load_explanation(conn: sqlite3.Connection, comparison_id: str) -> Optional[Explanation]:
    row = conn.execute(
        "SELECT * FROM explanations WHERE comparison_id = ?", (comparison_id,)
    ).fetchone()
    if row is None:
        return None
    return Explanation(
        id=row["id"],
        comparison_id=row["comparison_id"],
        text=row["explanation"],
        created_at=row["created_at"],
    )


# ── hydration ────────────────────────────────────────────────────────


def _project(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        description=row["description"],
        created_at=row["created_at"],
    )


def _code_version(row: sqlite3.Row) -> CodeVersion:
    return CodeVersion(
        id=row["id"],
        project_id=row["project_id"],
        version_label=row["version_label"],
        uploaded_at=row["uploaded_at"],
    )


def _hydrate_analysis(conn: sqlite3.Connection, row: sqlite3.Row) -> Analysis:
    return Analysis(
        id=row["id"],
        code_version_id=row["code_version_id"],
        summary=row["summary"],
        status=AnalysisStatus(row["status"]),
        failure_reason=row["failure_reason"],
        created_at=row["created_at"],
        issues=load_issues(conn, row["id"]),
    )


def _hydrate_comparison(conn: sqlite3.Connection, row: sqlite3.Row) -> Comparison:
    result_rows = conn.execute(
        "SELECT * FROM comparison_results WHERE comparison_id = ? ORDER BY id ASC",
        (row["id"],),
    ).fetchall()
    results = [
        ComparisonResult(
            issue_code=IssueCode(r["issue_code"]),
            change_type=ChangeType(r["change_type"]),
            before_severity=_optional(Severity, r["before_severity"]),
            before_complexity=_optional(Complexity, r["before_complexity"]),
            after_severity=_optional(Severity, r["after_severity"]),
            after_complexity=_optional(Complexity, r["after_complexity"]),
        )
        for r in result_rows
    ]
    return Comparison(
        id=row["id"],
        project_id=row["project_id"],
        from_analysis_id=row["from_analysis_id"],
        to_analysis_id=row["to_analysis_id"],
        created_at=row["created_at"],
        results=results,
        explanation=load_explanation(conn, row["id"]),
    )


def _optional(enum_type, value):
    return enum_type(value) if value is not None else None
