"""LLM adapter layer - abstracts over multiple LLM providers."""

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import create_llm_client, is_llm_configured
from app.adapters.llm.gemini_client import GeminiClient
from app.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "GeminiClient",
    "OpenAIClient",
    "create_llm_client",
    "is_llm_configured",
]
