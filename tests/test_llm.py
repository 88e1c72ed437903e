"""Tests for the LLM client and Groq provider.

This test suite covers:
- Thinking tag stripping
- Prompt size validation
- Provider error wrapping (no retries)
- Token usage logging
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError, APIStatusError

from config import Settings
from services.llm import (
    LLMClient,
    LLMServiceError,
    PromptTooLargeError,
    estimate_tokens,
    strip_thinking_tags,
)
from services.llm_providers import get_llm_provider
from services.llm_providers.groq import GroqLLMProvider


def make_status_error(status_code: int, message: str = "upstream error") -> APIStatusError:
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return APIStatusError(message=message, response=response, body=None)


# ============================================================================
# Thinking Tag Stripping Tests
# ============================================================================


class TestStripThinkingTags:
    def test_strip_simple_thinking_tag(self):
        assert strip_thinking_tags("<think>reasoning</think>answer") == "answer"

    def test_strip_multiline_thinking_tag(self):
        text = "<think>\nstep1\nstep2\n</think>\nfinal answer"
        assert strip_thinking_tags(text) == "final answer"

    def test_strip_thinking_variant(self):
        assert strip_thinking_tags("<thinking>hmm</thinking>{}") == "{}"

    def test_strip_unclosed_tag(self):
        assert strip_thinking_tags('{"a": 1}<think>never closed\nmore') == '{"a": 1}'

    def test_no_tags_unchanged(self):
        assert strip_thinking_tags("plain") == "plain"

    def test_empty_input(self):
        assert strip_thinking_tags("") == ""


# ============================================================================
# LLMClient Tests
# ============================================================================


class TestLLMClientGenerate:
    @pytest.mark.asyncio
    async def test_generate_sends_system_and_user_messages(self, llm_client, mock_llm_provider):
        mock_llm_provider.set_default_response("<think>plan</think>Hello")

        result = await llm_client.generate("Hi there", system_prompt="Be brief", temperature=0.3)

        assert result == "Hello"
        call = mock_llm_provider.get_last_call()
        assert call["messages"] == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hi there"},
        ]
        assert call["temperature"] == 0.3
        assert call["max_tokens"] == 2048

    @pytest.mark.asyncio
    async def test_provider_error_wrapped_without_retry(self, llm_client, mock_llm_provider):
        mock_llm_provider.set_error(make_status_error(503))

        with pytest.raises(LLMServiceError) as exc_info:
            await llm_client.generate("Hi")

        assert exc_info.value.status_code == 503
        assert exc_info.value.model == "mock-model"
        assert mock_llm_provider.get_call_count() == 1

    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self, llm_client, mock_llm_provider):
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        mock_llm_provider.set_error(APIConnectionError(request=request))

        with pytest.raises(LLMServiceError) as exc_info:
            await llm_client.generate("Hi")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.cause, APIConnectionError)

    @pytest.mark.asyncio
    async def test_oversized_prompt_rejected_before_call(self, mock_llm_provider):
        settings = Settings(_env_file=None, max_prompt_tokens=50)
        client = LLMClient(provider=mock_llm_provider, settings=settings)

        with pytest.raises(PromptTooLargeError) as exc_info:
            await client.generate("x" * 1000)

        assert exc_info.value.max_tokens == 50
        assert mock_llm_provider.get_call_count() == 0

    @pytest.mark.asyncio
    async def test_size_validation_can_be_skipped(self, mock_llm_provider):
        settings = Settings(_env_file=None, max_prompt_tokens=50)
        client = LLMClient(provider=mock_llm_provider, settings=settings)

        await client.generate("x" * 1000, validate_size=False)

        assert mock_llm_provider.get_call_count() == 1

    @pytest.mark.asyncio
    async def test_token_usage_logged(self, llm_client, caplog):
        with caplog.at_level(logging.INFO, logger="services.llm"):
            await llm_client.generate("Hi")

        usage_records = [r for r in caplog.records if r.getMessage() == "LLM token usage"]
        assert len(usage_records) == 1
        assert usage_records[0].token_usage["total_tokens"] == 20
        assert usage_records[0].token_usage["model"] == "mock-model"


class TestLLMClientChat:
    @pytest.mark.asyncio
    async def test_chat_uses_chat_temperature(self, llm_client, mock_llm_provider):
        mock_llm_provider.set_default_response("Sure!")
        messages = [
            {"role": "system", "content": "You are a travel agent"},
            {"role": "user", "content": "Plan a trip"},
        ]

        reply = await llm_client.chat(messages)

        assert reply == "Sure!"
        call = mock_llm_provider.get_last_call()
        assert call["messages"] == messages
        assert call["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_chat_rejects_oversized_conversation(self, mock_llm_provider):
        client = LLMClient(
            provider=mock_llm_provider,
            settings=Settings(_env_file=None, max_prompt_tokens=100),
        )
        messages = [{"role": "user", "content": "word " * 200}]

        with pytest.raises(PromptTooLargeError):
            await client.chat(messages)


class TestPromptBudget:
    def test_estimate_tokens(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd" * 10) == 11

    def test_budget_fits_validation(self, mock_llm_provider):
        settings = Settings(_env_file=None, max_prompt_tokens=500)
        client = LLMClient(provider=mock_llm_provider, settings=settings)
        template = "Header text\n"
        budget = client.prompt_budget_chars(template)

        prompt = template + "y" * budget
        assert client._validate_prompt_size([{"role": "user", "content": prompt}]) <= 500

    @pytest.mark.asyncio
    async def test_close_closes_provider(self, llm_client, mock_llm_provider):
        await llm_client.close()
        assert mock_llm_provider.closed is True


# ============================================================================
# Groq Provider Tests
# ============================================================================


class TestGroqProvider:
    def test_factory_uses_settings(self):
        settings = Settings(_env_file=None, groq_api_key="gsk-test", llm_model="llama-3.1-8b-instant")
        provider = get_llm_provider(settings)
        assert isinstance(provider, GroqLLMProvider)
        assert provider.model_name == "llama-3.1-8b-instant"
        assert str(provider.client.base_url).startswith("https://api.groq.com/openai/v1")

    @pytest.mark.asyncio
    async def test_generate_returns_text_and_usage(self):
        provider = GroqLLMProvider(api_key="gsk-test", base_url="https://example.invalid/v1", model="m")
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content="hello"))]
        response.usage = MagicMock(prompt_tokens=5, completion_tokens=2, total_tokens=7)

        with patch.object(
            provider.client.chat.completions, "create", AsyncMock(return_value=response)
        ) as create:
            text, usage = await provider.generate([{"role": "user", "content": "hi"}], temperature=0.3)

        assert text == "hello"
        assert usage == {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}
        assert create.call_args.kwargs["model"] == "m"
        assert create.call_args.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_generate_handles_missing_content(self):
        provider = GroqLLMProvider(api_key="gsk-test", base_url="https://example.invalid/v1", model="m")
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content=None))]
        response.usage = None

        with patch.object(provider.client.chat.completions, "create", AsyncMock(return_value=response)):
            text, usage = await provider.generate([{"role": "user", "content": "hi"}])

        assert text == ""
        assert usage == {}
