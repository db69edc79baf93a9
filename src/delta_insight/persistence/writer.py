"""Write projects, versions, analyses and comparisons into the review database.

Every multi-row write happens inside a single transaction so readers never
see an analysis without its issues or a comparison without its results.
"""

import sqlite3
from collections.abc import Sequence
from typing import Optional

from ..comparison.models import Comparison, ComparisonResult, Explanation
from ..issues.models import Issue
from .database import transaction
from .identity import new_id, utc_now
from .models import Analysis, AnalysisStatus, CodeVersion, Project


def save_project(
    conn: sqlite3.Connection,
    owner_id: str,
    name: str,
    description: Optional[str] = None,
) -> Project:
    """Insert a project owned by *owner_id*."""
    project = Project(
        id=new_id(),
        owner_id=owner_id,
        name=name,
        description=description,
        created_at=utc_now(),
    )
    conn.execute(
        """
        INSERT INTO projects (id, owner_id, name, description, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (project.id, project.owner_id, project.name, project.description, project.created_at),
    )
    return project


def delete_project(conn: sqlite3.Connection, project_id: str) -> bool:
    """Delete a project; versions, analyses and comparisons cascade."""
    cur = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
    return cur.rowcount > 0


def save_code_version(
    conn: sqlite3.Connection,
    project_id: str,
    version_label: Optional[str] = None,
) -> CodeVersion:
    """Insert a code version record. Source text is never persisted."""
    version = CodeVersion(
        id=new_id(),
        project_id=project_id,
        version_label=version_label,
        uploaded_at=utc_now(),
    )
    _insert_code_version(conn, version)
    return version


def rename_code_version(conn: sqlite3.Connection, version_id: str, version_label: str) -> bool:
    cur = conn.execute(
        "UPDATE code_versions SET version_label = ? WHERE id = ?",
        (version_label, version_id),
    )
    return cur.rowcount > 0


def delete_code_version(conn: sqlite3.Connection, version_id: str) -> bool:
    """Delete a version; its analysis and every comparison using it cascade."""
    cur = conn.execute("DELETE FROM code_versions WHERE id = ?", (version_id,))
    return cur.rowcount > 0


def save_analysis(
    conn: sqlite3.Connection,
    code_version_id: str,
    summary: str,
    issues: Sequence[Issue],
    status: AnalysisStatus = AnalysisStatus.COMPLETED,
    failure_reason: Optional[str] = None,
    replaces: Optional[str] = None,
) -> Analysis:
    """Persist an analysis with all its issues.

    Parameters
    ----------
    conn:
        An open ``sqlite3.Connection`` (from ``ReviewDB.connect()``).
    code_version_id:
        The version the analysis belongs to.
    summary, issues, status, failure_reason:
        The analyzer report. Issues are stored with their position so they
        read back in the same order.
    replaces:
        Id of an existing analysis of the same version to delete in the same
        transaction (its issues and comparisons cascade).

    Returns
    -------
    Analysis
        The stored analysis.
    """
    analysis = _new_analysis(code_version_id, summary, issues, status, failure_reason)

    with transaction(conn):
        if replaces is not None:
            conn.execute("DELETE FROM analyses WHERE id = ?", (replaces,))
        _insert_analysis(conn, analysis)

    return analysis


def save_analyzed_version(
    conn: sqlite3.Connection,
    project_id: str,
    version_label: Optional[str],
    summary: str,
    issues: Sequence[Issue],
    status: AnalysisStatus = AnalysisStatus.COMPLETED,
    failure_reason: Optional[str] = None,
) -> CodeVersion:
    """Insert a code version and its analysis in one transaction."""
    version = CodeVersion(
        id=new_id(),
        project_id=project_id,
        version_label=version_label,
        uploaded_at=utc_now(),
    )
    analysis = _new_analysis(version.id, summary, issues, status, failure_reason)

    with transaction(conn):
        _insert_code_version(conn, version)
        _insert_analysis(conn, analysis)

    version.analysis = analysis
    return version


def save_comparison(
    conn: sqlite3.Connection,
    project_id: str,
    from_analysis_id: str,
    to_analysis_id: str,
    results: Sequence[ComparisonResult],
) -> Comparison:
    """Persist a comparison together with its full result set.

    Raises
    ------
    sqlite3.IntegrityError
        If a comparison for the same ordered pair was committed first. The
        transaction is rolled back, so no partial rows remain.
    """
    comparison = Comparison(
        id=new_id(),
        project_id=project_id,
        from_analysis_id=from_analysis_id,
        to_analysis_id=to_analysis_id,
        created_at=utc_now(),
        results=list(results),
    )

    with transaction(conn):
        conn.execute(
            """
            INSERT INTO comparisons (id, project_id, from_analysis_id, to_analysis_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                comparison.id,
                comparison.project_id,
                comparison.from_analysis_id,
                comparison.to_analysis_id,
                comparison.created_at,
            ),
        )

        result_rows = [
            (
                comparison.id,
                r.issue_code.value,
                r.change_type.value,
                r.before_severity.value if r.before_severity else None,
                r.before_complexity.value if r.before_complexity else None,
                r.after_severity.value if r.after_severity else None,
                r.after_complexity.value if r.after_complexity else None,
            )
            for r in comparison.results
        ]
        if result_rows:
            conn.executemany(
                """
                INSERT INTO comparison_results (
                    comparison_id, issue_code, change_type,
                    before_severity, before_complexity, after_severity, after_complexity
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                result_rows,
            )

    return comparison


def save_explanation(conn: sqlite3.Connection, comparison_id: str, text: str) -> Explanation:
    """Attach an explanation to a comparison.

    Raises ``sqlite3.IntegrityError`` if the comparison already has one.
    """
    explanation = Explanation(
        id=new_id(),
        comparison_id=comparison_id,
        text=text,
        created_at=utc_now(),
    )
    conn.execute(
        """
        INSERT INTO explanations (id, comparison_id, explanation, created_at)
        VALUES (?, ?, ?, ?)
        """,
        (explanation.id, explanation.comparison_id, explanation.text, explanation.created_at),
    )
    return explanation


# ── row helpers ──────────────────────────────────────────────────────


def _new_analysis(
    code_version_id: str,
    summary: str,
    issues: Sequence[Issue],
    status: AnalysisStatus,
    failure_reason: Optional[str],
) -> Analysis:
    return Analysis(
        id=new_id(),
        code_version_id=code_version_id,
        summary=summary,
        status=status,
        failure_reason=failure_reason,
        created_at=utc_now(),
        issues=list(issues),
    )


def _insert_code_version(conn: sqlite3.Connection, version: CodeVersion) -> None:
    conn.execute(
        """
        INSERT INTO code_versions (id, project_id, version_label, uploaded_at)
        VALUES (?, ?, ?, ?)
        """,
        (version.id, version.project_id, version.version_label, version.uploaded_at),
    )


def _insert_analysis(conn: sqlite3.Connection, analysis: Analysis) -> None:
    conn.execute(
        """
        INSERT INTO analyses (
            id, code_version_id, summary, status, failure_reason, created_at
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            analysis.id,
            analysis.code_version_id,
            analysis.summary,
            analysis.status.value,
            analysis.failure_reason,
            analysis.created_at,
        ),
    )

    # ── issues (batch) ───────────────────────────────────────────
    issue_rows = [
        (
            analysis.id,
            position,
            issue.issue_code.value,
            issue.severity.value,
            issue.complexity.value,
            issue.function_name,
            issue.start_line,
            issue.end_line,
            issue.before_snippet,
            issue.after_snippet,
        )
        for position, issue in enumerate(analysis.issues)
    ]
    if issue_rows:
        conn.executemany(
            """
            INSERT INTO issues (
                analysis_id, position, issue_code, severity, complexity,
                function_name, start_line, end_line, before_snippet, after_snippet
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            issue_rows,
        )
