"""Abstract base class for second-pass rerankers.

A reranker scores ``(query, candidate)`` pairs jointly, which orders
candidates better than the vector similarity of independently embedded
texts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from workspace_rag.models.rag import QueryMatch


# Concrete implementation: VoyageReranker (workspace_rag/providers/rerank/)
class IRerankerProvider(ABC):
    """Contract for rerankers used by the retrieval service."""

    @abstractmethod
    async def rerank(
        self,
        query: str,
        matches: list[QueryMatch],
        top_n: int,
    ) -> list[QueryMatch]:
        """Reorder *matches* by relevance to *query*.

        Parameters
        ----------
        query:
            The user's search text.
        matches:
            Candidates from the similarity search.
        top_n:
            Maximum number of matches to return.

        Returns
        -------
        list[QueryMatch]
            At most *top_n* matches, most relevant first, with ``score``
            replaced by the reranker's relevance score.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"voyage-rerank-2"``."""
