"""Abstract base class for chat-completion providers."""

from abc import ABC, abstractmethod


class BaseLLMProvider(ABC):
    """Abstract base for LLM providers (Groq, any OpenAI-compatible endpoint)."""

    @abstractmethod
    async def generate(
        self,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> tuple[str, dict]:
        """Generate a completion.

        Args:
            messages: List of {"role": "...", "content": "..."} dicts.
            temperature: Sampling temperature.
            max_tokens: Max tokens to generate.

        Returns:
            Tuple of (generated_text, usage_dict).
            usage_dict contains: {"prompt_tokens": int, "completion_tokens": int, "total_tokens": int}
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier for logging."""
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client, if any."""
        return None
