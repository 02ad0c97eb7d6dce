"""Abstract base class for namespaced vector-store providers.

Every data operation takes exactly one, required ``namespace`` argument (the
workspace id).  There is no default namespace, so a caller cannot read or
delete another workspace's chunks by omission.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from workspace_rag.models.filters import FilterExpr
from workspace_rag.models.rag import (
    Chunk,
    IndexDescription,
    IndexStats,
    QueryMatch,
    WriteResult,
)


# Concrete implementation: ChromaVectorStore (workspace_rag/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for the vector store used by ingestion and retrieval.

    **Filters** are lists of :mod:`workspace_rag.models.filters` predicates
    combined with AND:

    * ``Equals(field="documentId", value="doc-1")``
    * ``In(field="topic", values=["Budget", "Hiring"])``
    * ``Range(field="createdAt", gte=datetime(...), lte=datetime(...))``

    Concrete providers translate them into their native query syntax.
    """

    @abstractmethod
    async def write(self, chunks: list[Chunk], namespace: str) -> WriteResult:
        """Embed and upsert *chunks* into *namespace* in bounded batches.

        A failing batch is recorded in ``WriteResult.errors`` and the
        remaining batches are still attempted.  Empty input returns a
        successful result with zero writes and makes no network call.
        """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        namespace: str,
        top_k: int = 10,
        filters: list[FilterExpr] | None = None,
        min_score: float = 0.0,
    ) -> list[QueryMatch]:
        """Return up to *top_k* matches with ``score >= min_score``.

        Parameters
        ----------
        vector:
            Query vector (query-mode embedding).
        namespace:
            Workspace to search.  Unknown namespaces yield no matches.
        top_k:
            Maximum number of matches.
        filters:
            Optional metadata predicates.
        min_score:
            Similarity floor; matches below it are dropped.

        Returns
        -------
        list[QueryMatch]
            Matches sorted by score, descending.

        Raises
        ------
        workspace_rag.utils.errors.VectorStoreError
            If the store query fails.
        """

    @abstractmethod
    async def query_by_text(
        self,
        text: str,
        namespace: str,
        top_k: int = 10,
        filters: list[FilterExpr] | None = None,
        min_score: float = 0.0,
    ) -> list[QueryMatch]:
        """Embed *text* in query mode and run :meth:`query`."""

    @abstractmethod
    async def fetch(
        self,
        filters: list[FilterExpr],
        namespace: str,
        limit: int = 10,
    ) -> list[QueryMatch]:
        """Return chunks matching *filters* without a similarity ranking.

        Used for adjacent-chunk lookups; returned ``score`` is ``0.0``.
        """

    @abstractmethod
    async def delete_by_metadata(self, filters: list[FilterExpr], namespace: str) -> None:
        """Delete every chunk in *namespace* matching *filters*.

        A namespace that does not exist is treated as success.
        """

    @abstractmethod
    async def delete_documents(self, ids: list[str], namespace: str) -> None:
        """Delete chunks by id.  Empty *ids* is a no-op."""

    @abstractmethod
    async def delete_namespace(self, namespace: str) -> None:
        """Drop the whole namespace.  Missing namespaces are ignored."""

    @abstractmethod
    async def get_stats(self) -> IndexStats:
        """Return dimension and total / per-namespace vector counts."""

    # ------------------------------------------------------------------
    # Index provisioning
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_indexes(self) -> list[str]:
        """Return the names of all indexes visible to this client."""

    @abstractmethod
    async def index_exists(self) -> bool:
        """Return ``True`` if the configured index has been provisioned."""

    @abstractmethod
    async def describe_index(self) -> IndexDescription:
        """Return provisioning details of the configured index."""

    @abstractmethod
    async def create_index_if_not_exists(self, dimension: int | None = None) -> bool:
        """Provision the configured index.

        Returns
        -------
        bool
            ``True`` if the index was created, ``False`` if it already existed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
