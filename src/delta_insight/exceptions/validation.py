"""Validation and lookup exceptions: bad identifiers, foreign records, bad issue fields."""

from typing import Any, Optional

from .base import DeltaInsightError


class ValidationError(DeltaInsightError):
    """Raised when a request is malformed or references an invalid record."""

    http_status = 400

    def __init__(self, message: str, field: Optional[str] = None, reason: Optional[str] = None):
        details = {}
        if field:
            details["field"] = field
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.field = field
        self.reason = reason


class MissingFieldError(ValidationError):
    """Raised when a required request field is absent or empty."""

    def __init__(self, field: str):
        super().__init__(f"{field} is required", field=field)


class InvalidIssueError(ValidationError):
    """Raised when an issue field falls outside its closed enumeration."""

    def __init__(self, field: str, value: Any):
        super().__init__(f"Invalid {field}: {value!r}", field=field, reason="not in enumeration")
        self.value = value


class NotFoundError(DeltaInsightError):
    """Raised when a record does not exist or is not owned by the requester."""

    http_status = 404

    def __init__(self, kind: str, identifier: Optional[str] = None):
        details = {"kind": kind}
        if identifier:
            details["id"] = identifier
        super().__init__(f"{kind} not found", details=details)
        self.kind = kind
        self.identifier = identifier


class AuthenticationError(DeltaInsightError):
    """Raised when a request carries no owner identity."""

    http_status = 401

    def __init__(self, reason: str = "Owner identity is required"):
        super().__init__(reason)
