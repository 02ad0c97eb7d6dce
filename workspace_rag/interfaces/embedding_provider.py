"""Abstract base class for text-embedding service providers.

Embedding families that distinguish stored content from search strings
(asymmetric retrieval) need the caller to say which one it is embedding, so
the contract exposes two entry points instead of a single ``embed``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: VoyageEmbeddingProvider (workspace_rag/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the vector store.

    Vectors from :meth:`embed_documents` and :meth:`embed_query` come from the
    same model family and are directly comparable by cosine similarity.
    """

    @abstractmethod
    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed content destined for storage ("document" mode).

        Parameters
        ----------
        texts:
            Any number of texts.  Implementations split the input into
            sub-batches when it exceeds the provider's per-call limits.

        Returns
        -------
        list[list[float]]
            One vector per input text, in input order.

        Raises
        ------
        workspace_rag.utils.errors.EmbeddingError
            If the embedding API call fails.
        """

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed a search string ("query" mode).

        Parameters
        ----------
        text:
            The query text.

        Returns
        -------
        list[float]
            The query vector, length :meth:`get_dimension`.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of produced vectors.

        Must match the dimension the vector index was created with.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"voyage-3-large"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured."""
