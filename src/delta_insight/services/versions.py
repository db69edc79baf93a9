"""Code versions and their analyses.

Uploading a version runs the analyzer on the submitted source and stores
only the structured result. The source text itself is dropped as soon as the
analyzer returns.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from ..ai.analyzer import CodeAnalyzer
from ..exceptions import MissingFieldError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..persistence import reader, writer
from ..persistence.database import retry_locked
from ..persistence.models import Analysis, AnalysisStatus, CodeVersion
from .context import OwnerContext
from .projects import ProjectService, check_optional_text

logger = get_logger(__name__)


class VersionService:
    """Upload, list and manage code versions; run and fetch their analyses.

    Parameters
    ----------
    conn:
        Open review-database connection.
    analyzer:
        The analyzer collaborator. Only needed for uploads and re-analysis.
    max_source_chars:
        Longest source text accepted; longer uploads are rejected before
        the analyzer is called.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        analyzer: Optional[CodeAnalyzer] = None,
        max_source_chars: int = 200_000,
        persistence_retries: int = 3,
    ):
        self.conn = conn
        self.analyzer = analyzer
        self.max_source_chars = max_source_chars
        self.persistence_retries = persistence_retries
        self.projects = ProjectService(conn, persistence_retries)

    # ── versions ──────────────────────────────────────────────────────

    def upload(
        self,
        ctx: OwnerContext,
        project_id: str,
        source_code: str,
        version_label: Optional[str] = None,
    ) -> CodeVersion:
        """Create a version from *source_code* and analyze it.

        An analyzer failure does not fail the upload: the version is stored
        with a failed analysis (no issues, fallback summary) which can be
        re-analyzed later.
        """
        project = self.projects.get(ctx, project_id)
        check_optional_text(version_label, "versionLabel")
        self._check_source(source_code)

        report = self._analyzer().analyze(source_code)

        version = retry_locked(
            "upload code version",
            lambda: writer.save_analyzed_version(
                self.conn,
                project.id,
                version_label,
                report.summary,
                report.issues,
                status=AnalysisStatus.FAILED if report.failed else AnalysisStatus.COMPLETED,
                failure_reason=report.failure_reason,
            ),
            self.persistence_retries,
        )
        logger.info(
            "Stored version %s of project %s (%s, %d issue(s))",
            version.id,
            project.id,
            version.analysis.status.value,
            len(version.analysis.issues),
        )
        return version

    def list(self, ctx: OwnerContext, project_id: str) -> list[CodeVersion]:
        project = self.projects.get(ctx, project_id)
        return reader.list_code_versions(self.conn, project.id)

    def get(self, ctx: OwnerContext, version_id: str) -> CodeVersion:
        """Return the version if it exists and belongs to one of *ctx*'s projects."""
        version = None
        if version_id and reader.load_version_owner(self.conn, version_id) == ctx.owner_id:
            version = reader.load_code_version(self.conn, version_id)
        if version is None:
            raise NotFoundError("Code version", version_id)
        return version

    def rename(self, ctx: OwnerContext, version_id: str, version_label: str) -> CodeVersion:
        if not isinstance(version_label, str) or not version_label.strip():
            raise MissingFieldError("versionLabel")
        version = self.get(ctx, version_id)
        retry_locked(
            "rename code version",
            lambda: writer.rename_code_version(self.conn, version.id, version_label.strip()),
            self.persistence_retries,
        )
        version.version_label = version_label.strip()
        return version

    def delete(self, ctx: OwnerContext, version_id: str) -> None:
        """Delete a version; its analysis and the comparisons using it go too."""
        version = self.get(ctx, version_id)
        retry_locked(
            "delete code version",
            lambda: writer.delete_code_version(self.conn, version.id),
            self.persistence_retries,
        )
        logger.info("Deleted version %s", version.id)

    # ── analyses ──────────────────────────────────────────────────────

    def analyze(self, ctx: OwnerContext, version_id: str, source_code: str) -> Analysis:
        """Analyze (or re-analyze) an existing version.

        A version holds at most one analysis. A completed analysis is final;
        a failed one is replaced, which also deletes comparisons built on it.
        """
        version = self.get(ctx, version_id)
        existing = version.analysis
        if existing is not None and not existing.failed:
            raise ValidationError(
                "Code version already has an analysis", field="versionId", reason="analyzed"
            )
        self._check_source(source_code)

        report = self._analyzer().analyze(source_code)
        analysis = retry_locked(
            "store analysis",
            lambda: writer.save_analysis(
                self.conn,
                version.id,
                report.summary,
                report.issues,
                status=AnalysisStatus.FAILED if report.failed else AnalysisStatus.COMPLETED,
                failure_reason=report.failure_reason,
                replaces=existing.id if existing is not None else None,
            ),
            self.persistence_retries,
        )
        if existing is not None:
            logger.info("Replaced failed analysis %s with %s", existing.id, analysis.id)
        return analysis

    def get_analysis(self, ctx: OwnerContext, version_id: str) -> Analysis:
        version = self.get(ctx, version_id)
        if version.analysis is None:
            raise NotFoundError("Analysis", version_id)
        return version.analysis

    # ── helpers ───────────────────────────────────────────────────────

    def _check_source(self, source_code: Optional[str]) -> None:
        if not isinstance(source_code, str) or not source_code.strip():
            raise MissingFieldError("sourceCode")
        if len(source_code) > self.max_source_chars:
            raise ValidationError(
                f"sourceCode exceeds {self.max_source_chars} characters",
                field="sourceCode",
                reason="too long",
            )

    def _analyzer(self) -> CodeAnalyzer:
        if self.analyzer is None:
            raise RuntimeError("VersionService was created without an analyzer")
        return self.analyzer
