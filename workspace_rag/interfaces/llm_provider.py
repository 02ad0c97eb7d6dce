"""Abstract base class for LLM service providers.

Only used for transcript topic segmentation: the model receives numbered
speaker turns and answers with JSON segment boundaries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: AnthropicLLMProvider, OpenAILLMProvider
# Located in: workspace_rag/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-completion LLMs."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The instruction message that sets the model's behaviour.
        user_prompt:
            The request, including the data to process.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        workspace_rag.utils.errors.LLMError
            If the API call fails or returns no text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
