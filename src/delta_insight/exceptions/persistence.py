"""Persistence exceptions."""

from .base import DeltaInsightError


class PersistenceError(DeltaInsightError):
    """Raised when the database keeps failing after the allowed retries."""

    http_status = 503

    def __init__(self, operation: str, reason: str):
        super().__init__(
            f"Database operation failed: {operation}",
            details={"operation": operation, "reason": reason},
        )
        self.operation = operation
        self.reason = reason
