"""Explainer: natural-language commentary on a finished comparison."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from ..comparison.models import ComparisonResult
from ..exceptions import ExplainerError, ExternalServiceError
from ..logging_config import get_logger
from .client import ChatMessage, ChatRequest, LLMClient
from .prompts import EXPLAINER_SYSTEM, build_explainer_prompt

logger = get_logger(__name__)


class ComparisonExplainer:
    """Asks the LLM to explain comparison results it did not compute.

    Only the results are sent; the explainer never sees source code. There
    is no fallback text: a failed call raises ``ExplainerError`` and the
    caller stores nothing.
    """

    def __init__(self, client: LLMClient, timeout: int = 60, model: Optional[str] = None):
        self.client = client
        self.timeout = timeout
        self.model = model

    def explain(self, results: Sequence[ComparisonResult]) -> str:
        request = ChatRequest(
            messages=[
                ChatMessage(role="system", content=EXPLAINER_SYSTEM),
                ChatMessage(role="user", content=build_explainer_prompt(results)),
            ],
            model=self.model,
        )
        try:
            response = self.client.chat(request, timeout=self.timeout)
        except ExternalServiceError as e:
            logger.warning("Explainer unavailable: %s", e.reason)
            raise ExplainerError(e.reason) from e

        if not response.content.strip():
            raise ExplainerError("empty reply")
        return response.content
