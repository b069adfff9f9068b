from abc import ABC, abstractmethod


class AbstractLLMClient(ABC):
    """Interface for LLM clients that produce free-form text."""

    provider: str = "unknown"
    model: str = ""

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Generate a completion for a single user prompt.

        Args:
            prompt: Full prompt sent as the user turn.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature.

        Returns:
            str: Generated text; empty when the model produced nothing.

        Raises:
            LLMAppError: If the provider call fails. The provider's own message
                is kept so callers can classify auth and quota failures.
        """
        ...
