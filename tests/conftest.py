"""Shared test fixtures for Delta Insight."""

import json
from collections.abc import Callable
from typing import Union

import pytest

from delta_insight.ai.analyzer import CodeAnalyzer
from delta_insight.ai.client import ChatRequest, ChatResponse, LLMClient
from delta_insight.ai.explainer import ComparisonExplainer
from delta_insight.config import ServiceConfig
from delta_insight.persistence.database import ReviewDB
from delta_insight.services import open_services
from delta_insight.services.context import OwnerContext

Reply = Union[str, Exception, Callable[[ChatRequest], str]]


class FakeLLMClient(LLMClient):
    """Scripted chat client: returns queued replies in order, then the default.

    A queued ``Exception`` is raised instead of returned. Every request is
    recorded in ``requests``.
    """

    def __init__(self, default: Reply = "", replies: list[Reply] | None = None):
        self.default = default
        self.replies = list(replies or [])
        self.requests: list[ChatRequest] = []

    def queue(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    def chat(self, request: ChatRequest, timeout: int = 60) -> ChatResponse:
        self.requests.append(request)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(request)
        return ChatResponse(content=reply)


def analyzer_reply(summary: str = "Looks fine.", issues: list[dict] | None = None) -> str:
    """Analyzer JSON reply in the wire format."""
    return json.dumps({"summary": summary, "issues": issues or []})


def wire_issue(code: str, severity: str, complexity: str = "O_1", **extra) -> dict:
    return {"issueCode": code, "severity": severity, "complexity": complexity, **extra}


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient(default=analyzer_reply())


@pytest.fixture
def config(tmp_path) -> ServiceConfig:
    return ServiceConfig(database_path=str(tmp_path / "review.db"), llm_retry_delay=0.0)


@pytest.fixture
def db(config):
    with ReviewDB(config.database_path) as review_db:
        yield review_db


@pytest.fixture
def services(config, llm):
    analyzer = CodeAnalyzer(llm)
    explainer = ComparisonExplainer(llm)
    with open_services(config, analyzer=analyzer, explainer=explainer) as bundle:
        yield bundle


@pytest.fixture
def alice() -> OwnerContext:
    return OwnerContext("alice")


@pytest.fixture
def bob() -> OwnerContext:
    return OwnerContext("bob")
