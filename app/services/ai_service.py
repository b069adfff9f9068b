"""AI text generation for staff-facing drafting tools."""

from __future__ import annotations

import logging
from typing import Any

from app.adapters.llm.base import AbstractLLMClient
from app.core.errors import LLMAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.utils.sanitizers import LIMITS, sanitize_prompt

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1024
MAX_OUTPUT_TOKENS = 4096
TEMPERATURE = 0.7
MIN_PROMPT_CHARS = 2


def build_prompt(prompt: str, context: Any = None) -> str:
    """Prefix the request with optional context, both already cut to size."""
    if context and isinstance(context, str):
        return f"Context: {sanitize_prompt(context, LIMITS['CONTEXT_MAX'])}\n\nRequest: {prompt}"
    return prompt


def resolve_max_tokens(max_tokens: Any) -> int:
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, (int, float)) or max_tokens <= 0:
        return DEFAULT_MAX_TOKENS
    return min(int(max_tokens), MAX_OUTPUT_TOKENS)


def classify_provider_error(exc: LLMAppError) -> LLMAppError:
    """Map a provider failure onto the status the client should see."""
    message = exc.message or ""
    if "API key" in message:
        return LLMAppError(
            code="ai_invalid_api_key",
            message="Invalid API key configuration",
            details={"http_status": 401},
        )
    if "quota" in message.lower():
        return LLMAppError(
            code="ai_quota_exceeded",
            message="API quota exceeded",
            details={"http_status": 429},
        )
    return LLMAppError(code="ai_generation_failed", message="AI generation failed")


class AIService:
    def __init__(self, llm: AbstractLLMClient) -> None:
        self.llm = llm

    async def generate(self, prompt: Any, context: Any = None, max_tokens: Any = None) -> dict[str, Any]:
        """Generate text for a prompt.

        Raises:
            ValidationAppError: Prompt missing, not a string or too short.
            LLMAppError: Provider failure (401/429/500) or empty output.
        """
        if not prompt or not isinstance(prompt, str):
            raise ValidationAppError(
                code="prompt_required",
                message="Prompt is required and must be a string",
                details={"field": "prompt"},
            )

        clean_prompt = sanitize_prompt(prompt)
        if len(clean_prompt) < MIN_PROMPT_CHARS:
            raise ValidationAppError(
                code="prompt_too_short",
                message="Prompt is too short",
                details={"field": "prompt", "min_value": MIN_PROMPT_CHARS},
            )

        full_prompt = build_prompt(clean_prompt, context)
        try:
            text = await self.llm.generate_text(
                full_prompt,
                max_tokens=resolve_max_tokens(max_tokens),
                temperature=TEMPERATURE,
            )
        except LLMAppError as exc:
            logger.error(
                "ai.generation_failed",
                extra={"provider": self.llm.provider, "error_msg": exc.message[:300]},
            )
            raise classify_provider_error(exc) from exc

        if not text:
            raise LLMAppError(code="ai_empty_response", message="No response generated")

        logger.info(
            "ai.generated",
            extra={
                "provider": self.llm.provider,
                "model": self.llm.model,
                "prompt_hash": hash_identifier(full_prompt),
                "output_chars": len(text),
            },
        )
        return {"success": True, "text": text, "model": self.llm.model}
