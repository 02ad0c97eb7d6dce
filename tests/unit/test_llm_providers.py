"""Unit tests for LLM provider adapters: Anthropic, OpenAI."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from workspace_rag.config.settings import Settings
from workspace_rag.utils.errors import LLMError


def _settings(**overrides) -> Settings:
    defaults = {
        "anthropic_api_key": "test-anthropic",
        "openai_api_key": "sk-test",
        "openai_base_url": "",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


# ======================================================================
# Anthropic
# ======================================================================


class TestAnthropicLLMProvider:
    def test_availability(self) -> None:
        from workspace_rag.providers.llm.anthropic_provider import AnthropicLLMProvider

        assert AnthropicLLMProvider(_settings()).is_available() is True
        assert AnthropicLLMProvider(_settings(anthropic_api_key="")).is_available() is False
        assert AnthropicLLMProvider(_settings()).get_provider_name() == "anthropic"

    @pytest.mark.asyncio
    async def test_complete_joins_text_blocks(self) -> None:
        from workspace_rag.providers.llm.anthropic_provider import AnthropicLLMProvider

        response = MagicMock()
        response.content = [
            MagicMock(type="text", text='{"chunks": '),
            MagicMock(type="tool_use", text="ignored"),
            MagicMock(type="text", text="[]}"),
        ]
        response.usage = MagicMock(input_tokens=10, output_tokens=5)
        client = AsyncMock()
        client.messages.create = AsyncMock(return_value=response)

        with patch(
            "workspace_rag.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=client,
        ):
            provider = AnthropicLLMProvider(_settings())
            result = await provider.complete("system prompt", "user prompt", max_tokens=123)

        assert result == '{"chunks": \n[]}'
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["system"] == "system prompt"
        assert kwargs["messages"] == [{"role": "user", "content": "user prompt"}]
        assert kwargs["max_tokens"] == 123
        assert kwargs["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_no_text_raises(self) -> None:
        from workspace_rag.providers.llm.anthropic_provider import AnthropicLLMProvider

        response = MagicMock()
        response.content = []
        client = AsyncMock()
        client.messages.create = AsyncMock(return_value=response)

        with patch(
            "workspace_rag.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=client,
        ):
            provider = AnthropicLLMProvider(_settings())
            with pytest.raises(LLMError, match="no text"):
                await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        import anthropic

        from workspace_rag.providers.llm.anthropic_provider import AnthropicLLMProvider

        client = AsyncMock()
        client.messages.create = AsyncMock(
            side_effect=anthropic.APIError(message="overloaded", request=MagicMock(), body=None)
        )

        with patch(
            "workspace_rag.providers.llm.anthropic_provider.anthropic.AsyncAnthropic",
            return_value=client,
        ):
            provider = AnthropicLLMProvider(_settings())
            with pytest.raises(LLMError) as exc_info:
                await provider.complete("s", "u")

        assert exc_info.value.provider_name == "anthropic"
        assert isinstance(exc_info.value.__cause__, anthropic.APIError)


# ======================================================================
# OpenAI
# ======================================================================


class TestOpenAILLMProvider:
    def test_provider_label(self) -> None:
        from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings()).get_provider_name() == "openai"
        compatible = OpenAILLMProvider(_settings(openai_base_url="http://localhost:9999/v1"))
        assert compatible.get_provider_name() == "openai-compatible"

    def test_availability(self) -> None:
        from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider

        assert OpenAILLMProvider(_settings()).is_available() is True
        # The SDK client refuses an empty key at construction time.
        with patch("workspace_rag.providers.llm.openai_provider.openai.AsyncOpenAI"):
            assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider

        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content="LLM response text"))]
        response.usage = MagicMock(total_tokens=100)
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(return_value=response)

        with patch("workspace_rag.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=client):
            provider = OpenAILLMProvider(_settings())
            result = await provider.complete("system prompt", "user prompt")

        assert result == "LLM response text"
        messages = client.chat.completions.create.await_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "system prompt"}

    @pytest.mark.asyncio
    async def test_empty_content_raises(self) -> None:
        from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider

        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content=None))]
        client = AsyncMock()
        client.chat.completions.create = AsyncMock(return_value=response)

        with patch("workspace_rag.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=client):
            provider = OpenAILLMProvider(_settings())
            with pytest.raises(LLMError, match="empty response"):
                await provider.complete("s", "u")

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        import openai

        from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider

        client = AsyncMock()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="Rate limit exceeded", request=MagicMock(), body=None)
        )

        with patch("workspace_rag.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=client):
            provider = OpenAILLMProvider(_settings())
            with pytest.raises(LLMError, match="Rate limit"):
                await provider.complete("s", "u")
