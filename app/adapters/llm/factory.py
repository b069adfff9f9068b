"""Factory pattern for creating LLM client instances."""

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.gemini_client import GeminiClient
from app.adapters.llm.openai_client import OpenAIClient
from app.core.config import settings
from app.core.errors import ServiceNotConfiguredAppError, ValidationAppError

SUPPORTED_PROVIDERS = ("gemini", "openai")


def is_llm_configured() -> bool:
    return bool(settings.llm.api_key) and settings.llm.provider.lower() in SUPPORTED_PROVIDERS


def create_llm_client() -> AbstractLLMClient:
    """Factory function to instantiate LLM clients based on provider.

    Reads configuration from app.core.config.settings (Pydantic Settings).
    Validates provider-specific requirements and routes to appropriate client.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ServiceNotConfiguredAppError: If no API key is set.
        ValidationAppError: If the provider name is unknown.
    """
    provider = settings.llm.provider.lower()

    if provider not in SUPPORTED_PROVIDERS:
        raise ValidationAppError(
            code="llm_unknown_provider",
            message=(
                f"Unknown LLM provider: '{provider}'. "
                f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
            ),
        )

    if not settings.llm.api_key:
        raise ServiceNotConfiguredAppError(
            code="ai_not_configured",
            message="AI service not configured",
            details={"hint": "Set LLM_API_KEY", "provider": provider},
        )

    if provider == "openai":
        return OpenAIClient(
            api_key=settings.llm.api_key,
            model=settings.llm.model,
            base_url=settings.llm.base_url,
            timeout_seconds=settings.llm.timeout_seconds,
        )

    return GeminiClient(
        api_key=settings.llm.api_key,
        model=settings.llm.model,
        timeout_seconds=settings.llm.timeout_seconds,
    )
