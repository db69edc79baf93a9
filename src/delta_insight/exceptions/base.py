"""Base exception for Delta Insight."""

from typing import Any, Dict, Optional


class DeltaInsightError(Exception):
    """Base exception for all Delta Insight errors.

    ``http_status`` is the status the API answers with when the error
    reaches the server boundary.
    """

    http_status: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Response envelope for the HTTP API."""
        payload: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload
