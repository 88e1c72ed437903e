"""LLM client with request size validation, thinking-tag stripping and usage logging.

Calls are made once; provider failures are wrapped in LLMServiceError and
left to the caller (the HTTP layer answers 502).
"""

import re
import time

from openai import APIStatusError, OpenAIError

from config import Settings, get_settings
from services.llm_providers import BaseLLMProvider, get_llm_provider
from utils.logging import get_logger

logger = get_logger(__name__)


def strip_thinking_tags(text: str) -> str:
    """Remove <think>...</think> tags from model output.

    Handles various formats:
    - <think>...</think>  (any attributes)
    - <thinking>...</thinking>
    - Unclosed tags (removes from opening tag to true end-of-string)
    """
    if not text:
        return text

    patterns = [
        r"<think\b[^>]*>.*?</think>\s*",
        r"<thinking\b[^>]*>.*?</thinking>\s*",
    ]
    for pattern in patterns:
        text = re.sub(pattern, "", text, flags=re.DOTALL | re.IGNORECASE)

    # \Z rather than $ so DOTALL runs to the real end of the string
    unclosed_patterns = [
        r"<think\b[^>]*>.*\Z",
        r"<thinking\b[^>]*>.*\Z",
    ]
    for pattern in unclosed_patterns:
        text = re.sub(pattern, "", text, flags=re.DOTALL | re.IGNORECASE)

    return text.strip()


# Overhead tokens for message formatting (role labels, special tokens, etc.)
MESSAGE_OVERHEAD_TOKENS = 10

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token count: about 4 characters per token for English text."""
    if not text:
        return 0
    return len(text) // CHARS_PER_TOKEN + 1


class PromptTooLargeError(ValueError):
    """Raised when the prompt exceeds the maximum allowed token count."""

    def __init__(
        self, estimated_tokens: int, max_tokens: int, message: str | None = None
    ):
        self.estimated_tokens = estimated_tokens
        self.max_tokens = max_tokens
        if message is None:
            message = (
                f"Prompt too large: estimated {estimated_tokens} tokens, "
                f"max allowed is {max_tokens} tokens"
            )
        super().__init__(message)


class LLMServiceError(Exception):
    """Raised when the model provider call fails."""

    def __init__(self, model: str, cause: Exception):
        self.model = model
        self.cause = cause
        self.status_code = getattr(cause, "status_code", None)
        super().__init__(f"LLM request to {model} failed: {type(cause).__name__}: {cause}")


class LLMClient:
    """Thin wrapper around one provider.

    Features:
    - Request size validation against max_prompt_tokens
    - Thinking tag stripping from model output
    - Structured token usage logging
    """

    def __init__(
        self,
        provider: BaseLLMProvider | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.provider = provider or get_llm_provider(self.settings)
        self.model = self.provider.model_name

    def _estimate_messages_tokens(self, messages: list[dict]) -> int:
        """Estimate total tokens for a list of messages, including per-message overhead."""
        total = 0
        for msg in messages:
            total += estimate_tokens(msg.get("content", ""))
            total += MESSAGE_OVERHEAD_TOKENS
        return total

    def prompt_budget_chars(self, template_overhead: str = "") -> int:
        """Characters of free text that fit in the prompt budget next to a fixed template."""
        # +1 covers the rounding in estimate_tokens when the two parts are joined
        used = estimate_tokens(template_overhead) + MESSAGE_OVERHEAD_TOKENS + 1
        return max(0, (self.settings.max_prompt_tokens - used) * CHARS_PER_TOKEN)

    def _validate_prompt_size(self, messages: list[dict]) -> int:
        """Validate that the prompt size is within limits.

        Returns:
            Estimated token count

        Raises:
            PromptTooLargeError: If estimated tokens exceed the limit
        """
        max_prompt_tokens = self.settings.max_prompt_tokens
        estimated_tokens = self._estimate_messages_tokens(messages)

        if estimated_tokens > max_prompt_tokens:
            logger.error(
                f"Prompt size validation failed: estimated {estimated_tokens} tokens "
                f"exceeds max {max_prompt_tokens} tokens"
            )
            raise PromptTooLargeError(estimated_tokens, max_prompt_tokens)

        warning_threshold = max_prompt_tokens * self.settings.prompt_warning_threshold
        if estimated_tokens > warning_threshold:
            logger.warning(
                f"Prompt size approaching limit: estimated {estimated_tokens} tokens "
                f"({estimated_tokens / max_prompt_tokens * 100:.1f}% of {max_prompt_tokens} max)"
            )

        return estimated_tokens

    def _log_token_usage(self, usage: dict | None, latency_ms: float, operation: str) -> None:
        """Log token usage as a structured event."""
        if not usage:
            logger.debug("Token usage not available in response")
            return

        prompt_tokens = usage.get("prompt_tokens", 0) or 0
        completion_tokens = usage.get("completion_tokens", 0) or 0
        total_tokens = usage.get("total_tokens", 0) or prompt_tokens + completion_tokens

        logger.info(
            "LLM token usage",
            extra={
                "token_usage": {
                    "model": self.model,
                    "operation": operation,
                    "prompt_tokens": prompt_tokens,
                    "completion_tokens": completion_tokens,
                    "total_tokens": total_tokens,
                    "latency_ms": round(latency_ms, 1),
                }
            },
        )

    async def _complete(
        self,
        messages: list[dict],
        temperature: float,
        max_tokens: int | None,
        operation: str,
    ) -> str:
        max_tokens = max_tokens or self.settings.llm_max_tokens
        start = time.perf_counter()
        try:
            text, usage = await self.provider.generate(
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            status = e.status_code if isinstance(e, APIStatusError) else None
            logger.error(
                f"LLM call with {self.model} failed: {type(e).__name__}: {e}",
                extra={"operation": operation, "status_code": status},
            )
            raise LLMServiceError(self.model, e) from e

        self._log_token_usage(usage, (time.perf_counter() - start) * 1000, operation)
        return strip_thinking_tags(text)

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = 0.7,
        max_tokens: int | None = None,
        validate_size: bool = True,
    ) -> str:
        """Generate a completion for a single user prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens to generate (default: llm_max_tokens)
            validate_size: Whether to validate prompt size before sending

        Returns:
            The generated text with thinking tags stripped

        Raises:
            PromptTooLargeError: If the prompt exceeds max_prompt_tokens
            LLMServiceError: If the provider call fails
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        if validate_size:
            self._validate_prompt_size(messages)

        return await self._complete(messages, temperature, max_tokens, "generate")

    async def chat(
        self,
        messages: list[dict],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Forward a whole conversation and return the assistant reply."""
        if temperature is None:
            temperature = self.settings.chat_temperature
        self._validate_prompt_size(messages)
        return await self._complete(messages, temperature, max_tokens, "chat")

    async def close(self):
        """Close the provider's HTTP client."""
        await self.provider.close()
