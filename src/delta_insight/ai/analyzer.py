"""Analyzer: turns source text into a typed, validated issue list via the LLM."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import AnalyzerError, ExternalServiceError
from ..issues.models import Issue
from ..logging_config import get_logger
from .client import ChatMessage, ChatRequest, LLMClient
from .prompts import ANALYZER_SYSTEM, build_analyzer_prompt
from .schema import decode_analysis

logger = get_logger(__name__)

FALLBACK_SUMMARY = "Analysis failed - unable to analyze code at this time."


@dataclass
class AnalyzerReport:
    """What the analyzer produced for one source text.

    ``failed`` marks the degraded result: no issues, the fallback summary
    and a ``failure_reason``. Callers store it as a failed analysis rather
    than pretending the code is clean.
    """

    summary: str
    issues: list[Issue] = field(default_factory=list)
    failed: bool = False
    failure_reason: Optional[str] = None


class CodeAnalyzer:
    """Sends source code to the LLM and validates the structured reply.

    The source text is only ever held in memory for the duration of the
    call; it is never logged or returned.
    """

    def __init__(self, client: LLMClient, timeout: int = 60, model: Optional[str] = None):
        self.client = client
        self.timeout = timeout
        self.model = model

    def analyze(self, source_code: str) -> AnalyzerReport:
        logger.debug("Analyzing %d characters of source", len(source_code))
        request = ChatRequest(
            messages=[
                ChatMessage(role="system", content=ANALYZER_SYSTEM),
                ChatMessage(role="user", content=build_analyzer_prompt(source_code)),
            ],
            model=self.model,
        )

        try:
            response = self.client.chat(request, timeout=self.timeout)
            summary, issues = decode_analysis(response.content)
        except AnalyzerError as e:
            logger.warning("Analyzer reply rejected: %s", e.reason)
            return self._fallback(e.reason)
        except ExternalServiceError as e:
            logger.warning("Analyzer unavailable: %s", e.reason)
            return self._fallback(e.reason)

        logger.info("Analyzer reported %d issue(s)", len(issues))
        return AnalyzerReport(summary=summary, issues=issues)

    @staticmethod
    def _fallback(reason: str) -> AnalyzerReport:
        return AnalyzerReport(summary=FALLBACK_SUMMARY, issues=[], failed=True, failure_reason=reason)
