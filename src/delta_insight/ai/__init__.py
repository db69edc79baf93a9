"""LLM-backed collaborators: the code analyzer and the comparison explainer."""

from .analyzer import FALLBACK_SUMMARY, AnalyzerReport, CodeAnalyzer
from .client import ChatMessage, ChatRequest, ChatResponse, LLMClient, OpenAILikeClient
from .explainer import ComparisonExplainer
from .schema import decode_analysis

__all__ = [
    "FALLBACK_SUMMARY",
    "AnalyzerReport",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "CodeAnalyzer",
    "ComparisonExplainer",
    "LLMClient",
    "OpenAILikeClient",
    "decode_analysis",
]
