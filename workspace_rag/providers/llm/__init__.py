"""LLM provider adapters used for transcript topic segmentation."""

from workspace_rag.providers.llm.anthropic_provider import AnthropicLLMProvider
from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
