"""Tests for OpenAILikeClient with the SDK transport stubbed out."""

from types import SimpleNamespace

import openai
import pytest

from delta_insight.ai import client as client_module
from delta_insight.ai.client import ChatMessage, ChatRequest, OpenAILikeClient
from delta_insight.config import ServiceConfig
from delta_insight.exceptions import ExternalServiceError, LLMRequestError


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model_dump=lambda: {"id": "cmpl-1"},
    )


class _StubCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(outcomes, **kw):
    client = OpenAILikeClient(api_key="test-key", retry_delay=0.5, **kw)
    stub = _StubCompletions(outcomes)
    client._client = SimpleNamespace(chat=SimpleNamespace(completions=stub))
    return client, stub


def _request(**kw):
    return ChatRequest(messages=[ChatMessage(role="user", content="hi")], **kw)


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []
    monkeypatch.setattr(client_module.time, "sleep", recorded.append)
    return recorded


class TestOpenAILikeClient:
    def test_returns_first_choice(self, sleeps):
        client, stub = _client([_completion("hello")])
        response = client.chat(_request(), timeout=7)

        assert response.content == "hello"
        assert response.raw == {"id": "cmpl-1"}
        call = stub.calls[0]
        assert call["model"] == "gpt-4o-mini"
        assert call["timeout"] == 7
        assert call["messages"] == [{"role": "user", "content": "hi"}]
        assert sleeps == []

    def test_request_model_overrides_default(self, sleeps):
        client, stub = _client([_completion("x")], default_model="base")
        client.chat(_request(model="override"))
        assert stub.calls[0]["model"] == "override"

    def test_null_content_is_empty_string(self, sleeps):
        client, _ = _client([_completion(None)])
        assert client.chat(_request()).content == ""

    def test_retries_with_backoff(self, sleeps):
        client, stub = _client(
            [openai.OpenAIError("down"), openai.OpenAIError("down"), _completion("up")]
        )
        assert client.chat(_request()).content == "up"
        assert len(stub.calls) == 3
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_max_retries(self, sleeps):
        client, stub = _client([openai.OpenAIError("down")] * 2, max_retries=2)
        with pytest.raises(LLMRequestError) as exc_info:
            client.chat(_request())
        assert exc_info.value.attempts == 2
        assert "down" in exc_info.value.reason
        assert isinstance(exc_info.value, ExternalServiceError)
        assert len(stub.calls) == 2
        # No sleep after the final attempt.
        assert sleeps == [0.5]

    def test_empty_choices_retried(self, sleeps):
        empty = SimpleNamespace(choices=[], model_dump=lambda: {})
        client, _ = _client([empty, _completion("ok")])
        assert client.chat(_request()).content == "ok"

    def test_from_config(self):
        config = ServiceConfig(
            llm_api_base="http://localhost:11434/v1",
            llm_api_key="k",
            llm_model="local-model",
            llm_max_retries=5,
            llm_retry_delay=0.25,
        )
        client = OpenAILikeClient.from_config(config)
        assert client.api_base == "http://localhost:11434/v1"
        assert client.default_model == "local-model"
        assert client.max_retries == 5
        assert client.retry_delay == 0.25
