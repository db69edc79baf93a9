"""Starlette ASGI application exposing projects, versions, analyses, comparisons and stats."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..ai.analyzer import CodeAnalyzer
from ..ai.client import LLMClient, OpenAILikeClient
from ..ai.explainer import ComparisonExplainer
from ..config import ServiceConfig
from ..exceptions import DeltaInsightError, ValidationError
from ..logging_config import get_logger
from ..services import Services, open_services
from ..services.context import OwnerContext
from . import serializers as ser

logger = get_logger(__name__)

OWNER_HEADER = "X-Owner-Id"

T = TypeVar("T")


def create_app(config: ServiceConfig, llm_client: Optional[LLMClient] = None) -> Starlette:
    """Build the Starlette application.

    Args:
        config: Service configuration (database path, LLM settings, limits)
        llm_client: Chat client shared by the analyzer and the explainer.
            Defaults to an :class:`OpenAILikeClient` built from *config*.
    """
    client = llm_client or OpenAILikeClient.from_config(config)
    analyzer = CodeAnalyzer(client, timeout=config.llm_timeout_seconds, model=config.llm_model)
    explainer = ComparisonExplainer(
        client, timeout=config.llm_timeout_seconds, model=config.llm_model
    )

    async def call(work: Callable[[Services], T]) -> T:
        """Run *work* on a worker thread with its own database connection."""

        def run() -> T:
            with open_services(config, analyzer=analyzer, explainer=explainer) as services:
                return work(services)

        return await run_in_threadpool(run)

    # ── health ─────────────────────────────────────────────────────────

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
        )

    # ── projects ───────────────────────────────────────────────────────

    async def projects_collection(request: Request) -> JSONResponse:
        ctx = _owner(request)
        if request.method == "POST":
            body = await _json_body(request)
            project = await call(
                lambda s: s.projects.create(ctx, body.get("name"), body.get("description"))
            )
            return _ok(ser.project_to_dict(project), status_code=201)

        projects = await call(lambda s: s.projects.list(ctx))
        return _ok([ser.project_to_dict(p) for p in projects])

    async def project_detail(request: Request) -> JSONResponse:
        ctx = _owner(request)
        project_id = request.path_params["project_id"]
        if request.method == "DELETE":
            await call(lambda s: s.projects.delete(ctx, project_id))
            return _ok({"id": project_id, "deleted": True})

        project = await call(lambda s: s.projects.get(ctx, project_id))
        return _ok(ser.project_to_dict(project))

    # ── versions ───────────────────────────────────────────────────────

    async def project_versions(request: Request) -> JSONResponse:
        ctx = _owner(request)
        project_id = request.path_params["project_id"]
        if request.method == "POST":
            body = await _json_body(request)
            version = await call(
                lambda s: s.versions.upload(
                    ctx, project_id, body.get("sourceCode"), body.get("versionLabel")
                )
            )
            return _ok(ser.version_to_dict(version), status_code=201)

        versions = await call(lambda s: s.versions.list(ctx, project_id))
        return _ok([ser.version_to_dict(v) for v in versions])

    async def version_detail(request: Request) -> JSONResponse:
        ctx = _owner(request)
        version_id = request.path_params["version_id"]
        if request.method == "DELETE":
            await call(lambda s: s.versions.delete(ctx, version_id))
            return _ok({"id": version_id, "deleted": True})
        if request.method == "PATCH":
            body = await _json_body(request)
            version = await call(
                lambda s: s.versions.rename(ctx, version_id, body.get("versionLabel"))
            )
            return _ok(ser.version_to_dict(version))

        version = await call(lambda s: s.versions.get(ctx, version_id))
        return _ok(ser.version_to_dict(version))

    # ── analyses ───────────────────────────────────────────────────────

    async def version_analysis(request: Request) -> JSONResponse:
        ctx = _owner(request)
        version_id = request.path_params["version_id"]
        if request.method == "POST":
            body = await _json_body(request)
            analysis = await call(
                lambda s: s.versions.analyze(ctx, version_id, body.get("sourceCode"))
            )
            return _ok(ser.analysis_to_dict(analysis), status_code=201)

        analysis = await call(lambda s: s.versions.get_analysis(ctx, version_id))
        return _ok(ser.analysis_to_dict(analysis))

    # ── comparisons ────────────────────────────────────────────────────

    async def project_comparisons(request: Request) -> JSONResponse:
        ctx = _owner(request)
        project_id = request.path_params["project_id"]
        if request.method == "POST":
            body = await _json_body(request)
            outcome = await call(
                lambda s: s.comparisons.compare_versions(
                    ctx, project_id, body.get("fromVersionId"), body.get("toVersionId")
                )
            )
            return _ok(
                ser.comparison_to_dict(outcome.comparison),
                status_code=200 if outcome.cached else 201,
                cached=outcome.cached,
            )

        comparisons = await call(lambda s: s.comparisons.list_comparisons(ctx, project_id))
        return _ok([ser.comparison_to_dict(c) for c in comparisons])

    async def comparison_detail(request: Request) -> JSONResponse:
        ctx = _owner(request)
        comparison_id = request.path_params["comparison_id"]
        comparison = await call(lambda s: s.comparisons.get_comparison(ctx, comparison_id))
        return _ok(ser.comparison_to_dict(comparison))

    async def comparison_explain(request: Request) -> JSONResponse:
        ctx = _owner(request)
        comparison_id = request.path_params["comparison_id"]
        explanation = await call(lambda s: s.comparisons.explain_comparison(ctx, comparison_id))
        return _ok(ser.explanation_to_dict(explanation))

    # ── stats ──────────────────────────────────────────────────────────

    async def stats_overall(request: Request) -> JSONResponse:
        ctx = _owner(request)
        stats = await call(lambda s: s.stats.overall(ctx))
        return _ok(ser.overall_to_dict(stats))

    async def stats_trends(request: Request) -> JSONResponse:
        ctx = _owner(request)
        days = _int_param(request, "days")
        points = await call(lambda s: s.stats.trends(ctx, days=days))
        return _ok(ser.trends_to_list(points))

    async def stats_issues(request: Request) -> JSONResponse:
        ctx = _owner(request)
        limit = _int_param(request, "limit")
        top = await call(lambda s: s.stats.top_issues(ctx, limit=limit))
        return _ok(ser.top_issues_to_list(top))

    async def stats_activity(request: Request) -> JSONResponse:
        ctx = _owner(request)
        limit = _int_param(request, "limit")
        events = await call(lambda s: s.stats.activity(ctx, limit=limit))
        return _ok(ser.activity_to_list(events))

    # ── errors ─────────────────────────────────────────────────────────

    async def handle_domain_error(request: Request, exc: DeltaInsightError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(exc.to_dict(), status_code=exc.http_status)

    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)

    routes = [
        Route("/health", health),
        Route("/api/projects", projects_collection, methods=["GET", "POST"]),
        Route("/api/projects/{project_id}", project_detail, methods=["GET", "DELETE"]),
        Route(
            "/api/versions/project/{project_id}", project_versions, methods=["GET", "POST"]
        ),
        Route(
            "/api/versions/{version_id}", version_detail, methods=["GET", "PATCH", "DELETE"]
        ),
        Route(
            "/api/analyses/version/{version_id}", version_analysis, methods=["GET", "POST"]
        ),
        Route(
            "/api/comparisons/project/{project_id}",
            project_comparisons,
            methods=["GET", "POST"],
        ),
        Route("/api/comparisons/{comparison_id}", comparison_detail),
        Route(
            "/api/comparisons/{comparison_id}/explain", comparison_explain, methods=["POST"]
        ),
        # Stats API
        Route("/api/stats", stats_overall),
        Route("/api/stats/trends", stats_trends),
        Route("/api/stats/issues", stats_issues),
        Route("/api/stats/activity", stats_activity),
    ]

    return Starlette(
        routes=routes,
        exception_handlers={
            DeltaInsightError: handle_domain_error,
            Exception: handle_unexpected,
        },
    )


def _ok(data: Any, status_code: int = 200, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": True, "data": data, **extra}, status_code=status_code)


def _owner(request: Request) -> OwnerContext:
    return OwnerContext.from_header(request.headers.get(OWNER_HEADER))


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        # JSONDecodeError or UnicodeDecodeError for a non-UTF-8 body
        raise ValidationError("Request body must be valid JSON", field="body")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field="body")
    return body


def _int_param(request: Request, name: str) -> Optional[int]:
    raw = request.query_params.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)
