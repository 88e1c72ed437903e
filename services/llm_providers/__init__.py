"""LLM provider abstraction layer.

Usage:
    from services.llm_providers import get_llm_provider

    provider = get_llm_provider(settings)
"""

from config import Settings, get_settings
from services.llm_providers.base import BaseLLMProvider
from services.llm_providers.groq import GroqLLMProvider


def get_llm_provider(settings: Settings | None = None) -> BaseLLMProvider:
    """Factory: return the configured LLM provider."""
    settings = settings or get_settings()
    return GroqLLMProvider(
        api_key=settings.get_groq_api_key(),
        base_url=settings.groq_base_url,
        model=settings.llm_model,
    )


__all__ = [
    "BaseLLMProvider",
    "GroqLLMProvider",
    "get_llm_provider",
]
