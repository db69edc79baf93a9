"""Chat-completion client used by the analyzer and the explainer.

``LLMClient`` is the narrow seam the rest of the package depends on; tests
substitute a scripted implementation. ``OpenAILikeClient`` talks to any
endpoint compatible with the OpenAI Chat Completions API.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import openai

from ..exceptions import LLMRequestError
from ..logging_config import get_logger

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]


@dataclass
class ChatMessage:
    role: Role
    content: str


@dataclass
class ChatRequest:
    messages: list[ChatMessage]
    model: Optional[str] = None
    max_tokens: int = 2048
    temperature: float = 0.2
    top_p: float = 0.9


@dataclass
class ChatResponse:
    content: str
    raw: dict[str, Any] = field(default_factory=dict)


class LLMClient(ABC):
    DEFAULT_TIMEOUT = 60

    @abstractmethod
    def chat(self, request: ChatRequest, timeout: int = DEFAULT_TIMEOUT) -> ChatResponse:
        """Send one chat request and return the first choice.

        Raises ``LLMRequestError`` when no reply could be obtained.
        """
        raise NotImplementedError


class OpenAILikeClient(LLMClient):
    """Client for OpenAI-compatible Chat Completions endpoints.

    Each call is retried up to ``max_retries`` times with exponential
    backoff (``retry_delay * 2**attempt``) before ``LLMRequestError`` is
    raised.
    """

    def __init__(
        self,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
        default_model: str = "gpt-4o-mini",
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.api_base = api_base
        self.default_model = default_model
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        # Retries happen in chat(), not in the SDK.
        self._client = openai.OpenAI(base_url=api_base, api_key=api_key or "unset", max_retries=0)

    @classmethod
    def from_config(cls, config) -> "OpenAILikeClient":
        return cls(
            api_base=config.llm_api_base,
            api_key=config.llm_api_key,
            default_model=config.llm_model,
            max_retries=config.llm_max_retries,
            retry_delay=config.llm_retry_delay,
        )

    def chat(self, request: ChatRequest, timeout: int = LLMClient.DEFAULT_TIMEOUT) -> ChatResponse:
        model = request.model or self.default_model
        messages = [{"role": m.role, "content": m.content} for m in request.messages]

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                response = self._client.chat.completions.create(
                    model=model,
                    messages=messages,
                    max_tokens=request.max_tokens,
                    temperature=request.temperature,
                    top_p=request.top_p,
                    timeout=timeout,
                )
                content = response.choices[0].message.content or ""
                return ChatResponse(content=content, raw=response.model_dump())
            except (openai.OpenAIError, IndexError) as e:
                last_error = e
                logger.warning(
                    "LLM request failed (attempt %d/%d): %s", attempt + 1, self.max_retries, e
                )

            if attempt < self.max_retries - 1:
                wait = self.retry_delay * (2**attempt)
                logger.debug("Retrying LLM request in %.1fs", wait)
                time.sleep(wait)

        raise LLMRequestError(str(last_error or "no attempts made"), attempts=self.max_retries)
