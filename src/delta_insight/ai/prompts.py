"""Prompt templates for the analyzer and the explainer."""

from __future__ import annotations

import json
from collections.abc import Sequence

from ..comparison.models import ChangeType, ComparisonResult
from ..issues.codes import ISSUE_DESCRIPTIONS, IssueCategory

_CATEGORY_TITLES = {
    IssueCategory.PERFORMANCE: "Performance Issues",
    IssueCategory.QUALITY: "Code Quality Issues",
    IssueCategory.SECURITY: "Security Issues",
    IssueCategory.ERROR_HANDLING: "Error Handling",
    IssueCategory.BEST_PRACTICE: "Best Practices",
}

ANALYZER_SYSTEM = "You are a code analyzer. You reply with JSON only."

_ANALYZER_TEMPLATE = """Analyze the following code and return a JSON object with this EXACT structure:

{{
  "summary": "Brief summary of the analysis (max 2 sentences)",
  "issues": [
    {{
      "issueCode": "ONE_OF_THE_VALID_CODES",
      "severity": "low" | "medium" | "high",
      "complexity": "O_1" | "O_n" | "O_n2",
      "functionName": "optional function name where issue is found",
      "startLine": optional line number (integer),
      "endLine": optional line number (integer),
      "beforeSnippet": "optional code snippet showing the issue (max 5 lines)",
      "afterSnippet": "optional suggested fix snippet (max 5 lines)"
    }}
  ]
}}

VALID ISSUE CODES (use ONLY these):
{codes}

RULES:
- issueCode MUST be one of the codes listed above
- severity MUST be one of: low, medium, high
- complexity MUST be one of: O_1, O_n, O_n2
- Return ONLY valid JSON, no markdown, no explanation
- If no issues found, return empty issues array
- Be thorough and identify multiple issues if present

CODE TO ANALYZE:
```
{source}
```"""

EXPLAINER_SYSTEM = "You are a code review assistant."

_EXPLAINER_TEMPLATE = """Explain the following comparison results between two code versions in a clear, helpful way.

The comparison was done DETERMINISTICALLY by the backend:
- IMPROVED = issue removed or severity/complexity decreased
- WORSENED = new issue or severity/complexity increased
- UNCHANGED = no change in issue

COMPARISON RESULTS:
{results}

SUMMARY:
- Improvements: {improved}
- Regressions: {worsened}
- Unchanged: {unchanged}

Write a concise explanation in MARKDOWN format with:
1. Overall assessment (1-2 sentences)
2. Improvements section (if any) - explain what got better
3. Regressions section (if any) - explain what needs attention
4. Recommendations (1-2 bullet points)

Keep it under 300 words. Be encouraging but honest."""


def _issue_code_listing() -> str:
    sections: list[str] = []
    for category, title in _CATEGORY_TITLES.items():
        lines = [f"{title}:"]
        lines.extend(
            f"- {code.value}: {desc}"
            for code, desc in ISSUE_DESCRIPTIONS.items()
            if code.category is category
        )
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def build_analyzer_prompt(source_code: str) -> str:
    return _ANALYZER_TEMPLATE.format(codes=_issue_code_listing(), source=source_code)


def build_explainer_prompt(results: Sequence[ComparisonResult]) -> str:
    """Prompt built from comparison results only; source code never reaches it."""
    payload = [
        {
            "issueCode": r.issue_code.value,
            "changeType": r.change_type.value,
            "beforeSeverity": r.before_severity.value if r.before_severity else None,
            "beforeComplexity": r.before_complexity.value if r.before_complexity else None,
            "afterSeverity": r.after_severity.value if r.after_severity else None,
            "afterComplexity": r.after_complexity.value if r.after_complexity else None,
        }
        for r in results
    ]

    def count(change_type: ChangeType) -> int:
        return sum(1 for r in results if r.change_type is change_type)

    return _EXPLAINER_TEMPLATE.format(
        results=json.dumps(payload, indent=2),
        improved=count(ChangeType.IMPROVED),
        worsened=count(ChangeType.WORSENED),
        unchanged=count(ChangeType.UNCHANGED),
    )
