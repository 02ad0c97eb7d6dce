"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.  When
``OPENAI_BASE_URL`` is set the client talks to that OpenAI-compatible
endpoint instead (TogetherAI, Groq, a local gateway...).
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from workspace_rag.config.settings import Settings
from workspace_rag.interfaces.llm_provider import ILLMProvider
from workspace_rag.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        client_kwargs: dict[str, Any] = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(60.0, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_text_model
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 4000,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._model,
            provider=self._provider_label,
            total_tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)
