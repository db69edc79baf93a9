"""Exception hierarchy for Delta Insight."""

from .base import DeltaInsightError
from .config import ConfigurationError, InvalidConfigError
from .external import AnalyzerError, ExplainerError, ExternalServiceError, LLMRequestError
from .persistence import PersistenceError
from .validation import (
    AuthenticationError,
    InvalidIssueError,
    MissingFieldError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "DeltaInsightError",
    "ValidationError",
    "MissingFieldError",
    "InvalidIssueError",
    "NotFoundError",
    "AuthenticationError",
    "ExternalServiceError",
    "LLMRequestError",
    "AnalyzerError",
    "ExplainerError",
    "PersistenceError",
    "ConfigurationError",
    "InvalidConfigError",
]
