"""External-dependency exceptions: LLM transport, analyzer and explainer failures."""

from typing import Optional

from .base import DeltaInsightError


class ExternalServiceError(DeltaInsightError):
    """Base class for failures of the analyzer / explainer collaborators."""

    http_status = 502

    def __init__(self, service: str, reason: str):
        super().__init__(f"{service} unavailable", details={"service": service, "reason": reason})
        self.service = service
        self.reason = reason


class LLMRequestError(ExternalServiceError):
    """Raised when the LLM endpoint fails after all retries."""

    def __init__(self, reason: str, attempts: Optional[int] = None):
        super().__init__("LLM", reason)
        if attempts is not None:
            self.details["attempts"] = str(attempts)
        self.attempts = attempts


class AnalyzerError(ExternalServiceError):
    """Raised when the analyzer reply cannot become a typed analysis."""

    def __init__(self, reason: str):
        super().__init__("Analyzer", reason)


class ExplainerError(ExternalServiceError):
    """Raised when no explanation could be produced for a comparison."""

    def __init__(self, reason: str):
        super().__init__("Explainer", reason)
