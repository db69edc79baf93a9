"""Comparison orchestration: precondition checks, cache-or-create, explanations.

A comparison is keyed by the ordered pair ``(from_analysis_id,
to_analysis_id)``. The UNIQUE constraint on that pair is the only guard
against duplicates: when a concurrent request commits the same pair first,
the insert fails, the transaction rolls back, and the committed row is
returned as a cache hit.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from ..ai.explainer import ComparisonExplainer
from ..comparison.engine import diff_issue_sets
from ..comparison.models import CompareOutcome, Comparison, Explanation
from ..exceptions import MissingFieldError, NotFoundError, PersistenceError, ValidationError
from ..logging_config import get_logger
from ..persistence import reader, writer
from ..persistence.database import retry_locked
from ..persistence.models import Analysis
from .context import OwnerContext
from .projects import ProjectService

logger = get_logger(__name__)


class ComparisonOrchestrator:
    """Creates, caches and explains comparisons for one database connection.

    Parameters
    ----------
    conn:
        Open review-database connection.
    explainer:
        Explanation collaborator; only needed by :meth:`explain_comparison`.
    persistence_retries:
        How often a locked-database error is retried before it surfaces as
        ``PersistenceError``.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        explainer: Optional[ComparisonExplainer] = None,
        persistence_retries: int = 3,
    ):
        self.conn = conn
        self.explainer = explainer
        self.persistence_retries = persistence_retries
        self.projects = ProjectService(conn, persistence_retries)

    # ── compare ───────────────────────────────────────────────────────

    def compare_versions(
        self,
        ctx: OwnerContext,
        project_id: str,
        from_version_id: str,
        to_version_id: str,
    ) -> CompareOutcome:
        """Compare the analyses of two versions of the same project.

        Checks run in a fixed order: project ownership (not found), both
        ids present, each version belongs to the project, each version has
        an analysis.
        """
        project = self.projects.get(ctx, project_id)
        if not from_version_id or not to_version_id:
            raise ValidationError(
                "Both fromVersionId and toVersionId are required",
                field="fromVersionId" if not from_version_id else "toVersionId",
            )

        sides = (("fromVersion", from_version_id), ("toVersion", to_version_id))
        analyses: list[str] = []
        for side, version_id in sides:
            version = None
            if isinstance(version_id, str):
                version = reader.load_code_version(self.conn, version_id)
            if version is None or version.project_id != project.id:
                raise ValidationError(f"Invalid {side}Id", field=f"{side}Id")
            if version.analysis is None:
                raise ValidationError(
                    f"{side} does not have an analysis", field=f"{side}Id", reason="not analyzed"
                )
            analyses.append(version.analysis.id)

        return self.compare_analyses(ctx, project.id, analyses[0], analyses[1])

    def compare_analyses(
        self,
        ctx: OwnerContext,
        project_id: str,
        from_analysis_id: str,
        to_analysis_id: str,
    ) -> CompareOutcome:
        """Return the comparison for the ordered pair, creating it if needed.

        ``cached`` is True when the comparison already existed (including
        when a concurrent request created it first). (A, B) and (B, A) are
        distinct comparisons.
        """
        project = self.projects.get(ctx, project_id)
        if not from_analysis_id:
            raise MissingFieldError("fromAnalysisId")
        if not to_analysis_id:
            raise MissingFieldError("toAnalysisId")

        before = self._analysis_in_project(project.id, from_analysis_id, "fromAnalysisId")
        after = self._analysis_in_project(project.id, to_analysis_id, "toAnalysisId")

        existing = reader.find_comparison_by_pair(self.conn, before.id, after.id)
        if existing is not None:
            logger.info("Comparison cache hit %s", existing.id)
            return CompareOutcome(comparison=existing, cached=True)

        results = diff_issue_sets(before.issues, after.issues)
        try:
            comparison = retry_locked(
                "create comparison",
                lambda: writer.save_comparison(self.conn, project.id, before.id, after.id, results),
                self.persistence_retries,
            )
        except sqlite3.IntegrityError:
            # Lost the race: someone committed this pair between lookup and insert.
            committed = reader.find_comparison_by_pair(self.conn, before.id, after.id)
            if committed is None:
                raise PersistenceError("create comparison", "pair conflict without a committed row")
            logger.info("Comparison %s created concurrently; returning it", committed.id)
            return CompareOutcome(comparison=committed, cached=True)

        logger.info(
            "Created comparison %s (%d result(s)) for project %s",
            comparison.id,
            len(comparison.results),
            project.id,
        )
        return CompareOutcome(comparison=comparison, cached=False)

    # ── read ──────────────────────────────────────────────────────────

    def get_comparison(self, ctx: OwnerContext, comparison_id: str) -> Comparison:
        comparison = None
        if comparison_id:
            comparison = reader.load_comparison(self.conn, comparison_id)
        if comparison is not None:
            owned = reader.load_project(self.conn, comparison.project_id, owner_id=ctx.owner_id)
            if owned is None:
                comparison = None
        if comparison is None:
            raise NotFoundError("Comparison", comparison_id)
        return comparison

    def list_comparisons(self, ctx: OwnerContext, project_id: str) -> list[Comparison]:
        """All comparisons of an owned project, newest first."""
        project = self.projects.get(ctx, project_id)
        return reader.list_comparisons(self.conn, project.id)

    # ── explain ───────────────────────────────────────────────────────

    def explain_comparison(self, ctx: OwnerContext, comparison_id: str) -> Explanation:
        """Return the comparison's explanation, generating it on first request.

        The explainer only sees the stored results. If it fails,
        ``ExplainerError`` propagates and nothing is stored.
        """
        comparison = self.get_comparison(ctx, comparison_id)
        if comparison.explanation is not None:
            return comparison.explanation

        if self.explainer is None:
            raise RuntimeError("ComparisonOrchestrator was created without an explainer")
        text = self.explainer.explain(comparison.results)

        try:
            explanation = retry_locked(
                "store explanation",
                lambda: writer.save_explanation(self.conn, comparison.id, text),
                self.persistence_retries,
            )
        except sqlite3.IntegrityError:
            committed = reader.load_explanation(self.conn, comparison.id)
            if committed is None:
                raise
            return committed

        logger.info("Stored explanation for comparison %s", comparison.id)
        return explanation

    # ── helpers ───────────────────────────────────────────────────────

    def _analysis_in_project(self, project_id: str, analysis_id: str, field: str) -> Analysis:
        analysis = None
        if isinstance(analysis_id, str):
            analysis = reader.load_analysis(self.conn, analysis_id)
        if analysis is None or reader.load_analysis_project_id(self.conn, analysis_id) != project_id:
            raise ValidationError(f"Invalid {field}", field=field)
        if analysis.failed:
            raise ValidationError(
                f"{field} refers to a failed analysis; re-analyze the version first",
                field=field,
                reason="analysis failed",
            )
        return analysis
