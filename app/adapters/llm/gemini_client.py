"""Google Gemini LLM client adapter."""

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError


class GeminiClient(AbstractLLMClient):
    """Client for Gemini text generation via the ``google-genai`` SDK.

    Uses the SDK's async surface (``client.aio``).
    """

    provider = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 45.0,
        client: genai.Client | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Google AI Studio API key.
            model: Model name (e.g., "gemini-2.0-flash").
            timeout_seconds: Timeout for requests in seconds.
            client: Pre-built SDK client (tests).
        """
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
        )
        self.model = model

    async def generate_text(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        config = types.GenerateContentConfig(
            max_output_tokens=max_tokens,
            temperature=temperature,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise LLMAppError(
                code="llm_provider_error",
                message=f"Gemini API error: {exc}",
                details={"provider": self.provider, "model": self.model},
            ) from exc

        return (response.text or "").strip()
