"""OpenAI LLM client adapter."""

from typing import Any

from openai import AsyncOpenAI, OpenAIError

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError


class OpenAIClient(AbstractLLMClient):
    """Client for calling OpenAI chat completions.

    Uses the official OpenAI Python SDK with async support. Any
    OpenAI-compatible endpoint works through ``base_url``.
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini").
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for requests in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def generate_text(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            response = await self.client.chat.completions.create(**request_params)
        except OpenAIError as exc:
            raise LLMAppError(
                code="llm_provider_error",
                message=f"OpenAI API error: {exc}",
                details={"provider": self.provider, "model": self.model},
            ) from exc

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
