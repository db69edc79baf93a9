"""JSON serialization of domain records for the API and ``--json`` CLI output.

Keys are camelCase to match the HTTP contract. Complexity is emitted in its
wire spelling (``O_n2``) with a separate ``complexityLabel`` for display.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from ..comparison.models import ChangeType, Comparison, ComparisonResult, Explanation
from ..issues.codes import Complexity
from ..issues.models import Issue
from ..persistence.models import Analysis, CodeVersion, Project
from ..persistence.queries import ActivityEvent, OverallStats, TopIssue, TrendPoint


def project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "createdAt": project.created_at,
    }


def issue_to_dict(issue: Issue) -> dict[str, Any]:
    return {
        "issueCode": issue.issue_code.value,
        "category": issue.issue_code.category.value,
        "severity": issue.severity.value,
        "complexity": issue.complexity.value,
        "complexityLabel": issue.complexity.label,
        "functionName": issue.function_name,
        "startLine": issue.start_line,
        "endLine": issue.end_line,
        "beforeSnippet": issue.before_snippet,
        "afterSnippet": issue.after_snippet,
    }


def analysis_to_dict(analysis: Analysis) -> dict[str, Any]:
    return {
        "id": analysis.id,
        "codeVersionId": analysis.code_version_id,
        "summary": analysis.summary,
        "status": analysis.status.value,
        "failureReason": analysis.failure_reason,
        "createdAt": analysis.created_at,
        "issues": [issue_to_dict(i) for i in analysis.issues],
    }


def version_to_dict(version: CodeVersion) -> dict[str, Any]:
    return {
        "id": version.id,
        "projectId": version.project_id,
        "versionLabel": version.version_label,
        "uploadedAt": version.uploaded_at,
        "analysis": analysis_to_dict(version.analysis) if version.analysis else None,
    }


def result_to_dict(result: ComparisonResult) -> dict[str, Any]:
    return {
        "issueCode": result.issue_code.value,
        "changeType": result.change_type.value,
        "beforeSeverity": result.before_severity.value if result.before_severity else None,
        "beforeComplexity": _complexity(result.before_complexity),
        "afterSeverity": result.after_severity.value if result.after_severity else None,
        "afterComplexity": _complexity(result.after_complexity),
    }


def explanation_to_dict(explanation: Explanation) -> dict[str, Any]:
    return {
        "id": explanation.id,
        "comparisonId": explanation.comparison_id,
        "explanation": explanation.text,
        "createdAt": explanation.created_at,
    }


def comparison_to_dict(comparison: Comparison) -> dict[str, Any]:
    return {
        "id": comparison.id,
        "projectId": comparison.project_id,
        "fromAnalysisId": comparison.from_analysis_id,
        "toAnalysisId": comparison.to_analysis_id,
        "createdAt": comparison.created_at,
        "summary": {ct.value: comparison.count(ct) for ct in ChangeType},
        "results": [result_to_dict(r) for r in comparison.results],
        "explanation": (
            explanation_to_dict(comparison.explanation) if comparison.explanation else None
        ),
    }


def overall_to_dict(stats: OverallStats) -> dict[str, Any]:
    return {
        "totalProjects": stats.total_projects,
        "totalVersions": stats.total_versions,
        "totalIssues": stats.total_issues,
        "totalComparisons": stats.total_comparisons,
        "changeTypeBreakdown": dict(stats.breakdown),
    }


def trends_to_list(points: list[TrendPoint]) -> list[dict[str, Any]]:
    return [asdict(p) for p in points]


def top_issues_to_list(top: list[TopIssue]) -> list[dict[str, Any]]:
    return [{"issueCode": t.issue_code, "count": t.count} for t in top]


def activity_to_list(events: list[ActivityEvent]) -> list[dict[str, Any]]:
    out = []
    for e in events:
        item: dict[str, Any] = {
            "type": e.type,
            "id": e.id,
            "projectId": e.project_id,
            "projectName": e.project_name,
            "createdAt": e.created_at,
        }
        if e.type == "analysis":
            item["versionLabel"] = e.version_label
            item["issueCount"] = e.issue_count
        else:
            item["resultCount"] = e.result_count
        out.append(item)
    return out


def _complexity(value: Optional[Complexity]) -> Optional[str]:
    return value.value if value is not None else None
