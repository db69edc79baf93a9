"""Tests for the exception hierarchy and its HTTP mapping."""

import pytest

from delta_insight.exceptions import (
    AnalyzerError,
    AuthenticationError,
    ConfigurationError,
    DeltaInsightError,
    ExplainerError,
    ExternalServiceError,
    InvalidConfigError,
    InvalidIssueError,
    LLMRequestError,
    MissingFieldError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize("error", [
        ValidationError("bad"),
        MissingFieldError("name"),
        InvalidIssueError("severity", "critical"),
        NotFoundError("Project"),
        AuthenticationError(),
        LLMRequestError("down"),
        AnalyzerError("bad json"),
        ExplainerError("empty reply"),
        PersistenceError("create comparison", "locked"),
        InvalidConfigError("port", 0, "too small"),
    ])
    def test_all_are_domain_errors(self, error):
        assert isinstance(error, DeltaInsightError)

    def test_external_family(self):
        for error in (LLMRequestError("x"), AnalyzerError("x"), ExplainerError("x")):
            assert isinstance(error, ExternalServiceError)

    def test_field_errors_are_validation_errors(self):
        assert isinstance(MissingFieldError("name"), ValidationError)
        assert isinstance(InvalidIssueError("issueCode", "X"), ValidationError)

    def test_config_family(self):
        assert isinstance(InvalidConfigError("port", 0, "r"), ConfigurationError)


class TestHttpStatus:
    @pytest.mark.parametrize("error,status", [
        (ValidationError("bad"), 400),
        (MissingFieldError("name"), 400),
        (AuthenticationError(), 401),
        (NotFoundError("Comparison", "c1"), 404),
        (ExplainerError("empty reply"), 502),
        (PersistenceError("op", "locked"), 503),
        (DeltaInsightError("boom"), 500),
    ])
    def test_status(self, error, status):
        assert error.http_status == status


class TestMessages:
    def test_missing_field(self):
        error = MissingFieldError("sourceCode")
        assert error.message == "sourceCode is required"
        assert error.field == "sourceCode"

    def test_not_found(self):
        error = NotFoundError("Project", "p1")
        assert error.message == "Project not found"
        assert error.details == {"kind": "Project", "id": "p1"}

    def test_str_includes_details(self):
        assert str(PersistenceError("op", "locked")) == (
            "Database operation failed: op (operation=op, reason=locked)"
        )

    def test_llm_attempts_recorded(self):
        error = LLMRequestError("timeout", attempts=3)
        assert error.details["attempts"] == "3"
        assert error.reason == "timeout"


class TestEnvelope:
    def test_with_details(self):
        payload = ValidationError("Invalid toVersionId", field="toVersionId").to_dict()
        assert payload == {
            "success": False,
            "error": "Invalid toVersionId",
            "details": {"field": "toVersionId"},
        }

    def test_without_details(self):
        assert AuthenticationError().to_dict() == {
            "success": False,
            "error": "Owner identity is required",
        }
