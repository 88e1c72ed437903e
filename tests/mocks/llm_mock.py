"""Mock LLM provider for unit testing.

Wrapped in a real LLMClient, it gives deterministic, controllable replies
without making API calls.
"""

import json
from typing import Optional

from services.llm_providers.base import BaseLLMProvider


class MockLLMProvider(BaseLLMProvider):
    """Scripted provider.

    Replies are matched by prompt pattern against the last message; an
    error set with set_error is raised on every call.
    """

    def __init__(self, model: str = "mock-model"):
        self._model = model
        self._responses: dict[str, str] = {}
        self._default_response = "Mock LLM response"
        self._error: Exception | None = None
        self._call_history: list[dict] = []
        self.usage = {"prompt_tokens": 12, "completion_tokens": 8, "total_tokens": 20}
        self.closed = False

    @property
    def model_name(self) -> str:
        return self._model

    def set_response(self, prompt_pattern: str, response: str):
        """Set response for prompts containing the pattern."""
        self._responses[prompt_pattern.lower()] = response

    def set_json_response(self, prompt_pattern: str, data: dict):
        """Set JSON response for prompts containing the pattern."""
        self._responses[prompt_pattern.lower()] = json.dumps(data)

    def set_default_response(self, response: str):
        """Set the default response for unmatched prompts."""
        self._default_response = response

    def set_error(self, error: Exception | None):
        self._error = error

    async def generate(
        self,
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> tuple[str, dict]:
        self._call_history.append(
            {
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self._error is not None:
            raise self._error

        prompt_lower = messages[-1]["content"].lower() if messages else ""
        for pattern, response in self._responses.items():
            if pattern in prompt_lower:
                return response, dict(self.usage)

        return self._default_response, dict(self.usage)

    async def close(self) -> None:
        self.closed = True

    def get_call_count(self) -> int:
        """Get number of generate calls."""
        return len(self._call_history)

    def get_last_call(self) -> Optional[dict]:
        """Get the most recent call arguments."""
        return self._call_history[-1] if self._call_history else None

    def reset(self):
        """Reset all state."""
        self._responses.clear()
        self._call_history.clear()
        self._error = None
        self._default_response = "Mock LLM response"
