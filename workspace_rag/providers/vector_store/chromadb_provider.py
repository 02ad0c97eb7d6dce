"""ChromaDB vector store provider adapter.

Implements :class:`IVectorStoreProvider` on top of ``chromadb``.  An *index*
is a family of collections sharing a name prefix; each namespace (workspace)
is its own collection named ``{index}--{namespace}``, so a query can only
ever see the collection it was pointed at.  A registry collection named
after the index records its provisioning details (dimension, metric).

Embeddings are always computed by the injected :class:`IEmbeddingProvider`;
ChromaDB's built-in embedding function is replaced by a no-op.
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from typing import Any, NamedTuple

# Must be set before chromadb is imported; Settings below covers newer releases.
os.environ.setdefault("ANONYMIZED_TELEMETRY", "False")

import chromadb
import structlog
from chromadb.config import Settings as ChromaSettings

from workspace_rag.interfaces.embedding_provider import IEmbeddingProvider
from workspace_rag.interfaces.vector_store_provider import IVectorStoreProvider
from workspace_rag.models.filters import Equals, FilterExpr, In, Range
from workspace_rag.models.rag import (
    Chunk,
    IndexDescription,
    IndexStats,
    QueryMatch,
    RAGMetadata,
    WriteResult,
)
from workspace_rag.utils.errors import NotFoundTransient, VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

# Metadata stored as comma-joined strings; filtered in Python after the query.
LIST_FIELDS = frozenset({"speakers", "participants", "sourceTranscriptIds"})
TIMESTAMP_SUFFIX = "_ts"

_NAMESPACE_SEPARATOR = "--"
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*[A-Za-z0-9]$|^[A-Za-z0-9]$")
_NOT_FOUND_MARKERS = ("does not exist", "not found", "notfound")
_POST_FILTER_OVERFETCH = 4


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that refuses to run.

    Every write and query passes pre-computed vectors, so this only stops
    ChromaDB from loading its default ONNX model on collection creation.
    Newer ChromaDB releases persist the function's name and config with the
    collection, hence ``get_config``/``build_from_config``.
    """

    def __init__(self) -> None:
        pass

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "workspace-rag passes pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    @staticmethod
    def name() -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"

    def get_config(self) -> dict[str, Any]:
        return {}

    @staticmethod
    def build_from_config(config: dict[str, Any]) -> _NoopEmbeddingFunction:
        return _NoopEmbeddingFunction()


# ---------------------------------------------------------------------------
# Filter translation
# ---------------------------------------------------------------------------


class TranslatedFilter(NamedTuple):
    """A ChromaDB ``where`` clause plus predicates it cannot express."""

    where: dict[str, Any] | None
    post_filters: list[FilterExpr]


def _to_timestamp(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def translate_filters(filters: list[FilterExpr] | None) -> TranslatedFilter:
    """Translate typed predicates into ChromaDB ``where`` syntax.

    ``Equals`` becomes ``$eq``, ``In`` becomes ``$in`` and each ``Range``
    bound becomes its own ``$gte`` / ``$lte`` clause.  Datetime bounds are
    compared against the numeric ``<field>_ts`` companion because ChromaDB
    only orders numbers.  Several clauses are joined with ``$and``.

    Predicates on list-valued fields are returned as ``post_filters``.
    """
    clauses: list[dict[str, Any]] = []
    post_filters: list[FilterExpr] = []

    for expr in filters or []:
        if expr.field in LIST_FIELDS:
            if isinstance(expr, Range):
                raise ValueError(f"Range predicates are not supported on list field {expr.field!r}")
            post_filters.append(expr)
        elif isinstance(expr, Equals):
            clauses.append({expr.field: {"$eq": expr.value}})
        elif isinstance(expr, In):
            clauses.append({expr.field: {"$in": list(expr.values)}})
        elif isinstance(expr, Range):
            for operator, bound in (("$gte", expr.gte), ("$lte", expr.lte)):
                if bound is None:
                    continue
                if isinstance(bound, datetime):
                    clauses.append({f"{expr.field}{TIMESTAMP_SUFFIX}": {operator: _to_timestamp(bound)}})
                else:
                    clauses.append({expr.field: {operator: bound}})

    if not clauses:
        where = None
    elif len(clauses) == 1:
        where = clauses[0]
    else:
        where = {"$and": clauses}
    return TranslatedFilter(where=where, post_filters=post_filters)


def matches_post_filters(meta: dict[str, Any], post_filters: list[FilterExpr]) -> bool:
    """Apply list-field predicates to one stored metadata dict."""
    for expr in post_filters:
        stored = set(split_list(meta.get(expr.field)))
        if isinstance(expr, Equals) and expr.value not in stored:
            return False
        if isinstance(expr, In) and not stored.intersection(expr.values):
            return False
    return True


# ---------------------------------------------------------------------------
# Metadata (de)serialization
# ---------------------------------------------------------------------------


def split_list(value: Any) -> list[str]:
    """Split a comma-joined metadata string back into a list."""
    if not value or not isinstance(value, str):
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def chunk_to_metadata(chunk: Chunk) -> dict[str, str | int | float | bool]:
    """Flatten chunk metadata into ChromaDB's scalar-only metadata format."""
    meta: dict[str, str | int | float | bool] = {}
    for key, value in chunk.metadata.to_store_dict().items():
        if isinstance(value, list):
            meta[key] = ",".join(value)
        elif isinstance(value, datetime):
            meta[key] = value.isoformat()
            meta[f"{key}{TIMESTAMP_SUFFIX}"] = _to_timestamp(value)
        else:
            meta[key] = value

    meeting_date = meta.get("meetingDate")
    if isinstance(meeting_date, str):
        try:
            meta[f"meetingDate{TIMESTAMP_SUFFIX}"] = _to_timestamp(datetime.fromisoformat(meeting_date))
        except ValueError:
            logger.warning("meeting_date_not_iso", document_id=chunk.metadata.document_id)
    return meta


def metadata_from_store(meta: dict[str, Any]) -> RAGMetadata:
    """Rebuild :class:`RAGMetadata` from a stored metadata dict."""
    clean: dict[str, Any] = {}
    for key, value in meta.items():
        if key.endswith(TIMESTAMP_SUFFIX):
            continue
        clean[key] = split_list(value) if key in LIST_FIELDS else value
    return RAGMetadata.model_validate(clean)


def _is_not_found(exc: Exception) -> bool:
    if "NotFound" in type(exc).__name__:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _NOT_FOUND_MARKERS)


def build_chroma_client(
    persist_directory: str = "./data/chromadb",
    host: str = "",
    port: int = 8000,
    api_key: str = "",
    ssl: bool = False,
) -> Any:
    """Return an HTTP client when *host* is set, else an embedded persistent one."""
    chroma_settings = ChromaSettings(anonymized_telemetry=False)
    if host:
        headers = {"x-chroma-token": api_key} if api_key else None
        return chromadb.HttpClient(
            host=host, port=port, ssl=ssl, headers=headers, settings=chroma_settings
        )
    return chromadb.PersistentClient(path=persist_directory, settings=chroma_settings)


class ChromaVectorStore(IVectorStoreProvider):
    """Namespaced vector store backed by ChromaDB collections.

    Parameters
    ----------
    embedding_provider:
        Used in document mode by :meth:`write` and in query mode by
        :meth:`query_by_text`.
    client:
        A ChromaDB client (see :func:`build_chroma_client`).
    index_name:
        Prefix shared by every namespace collection of this index.
    batch_size:
        Chunks embedded and upserted per batch in :meth:`write`.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        client: Any,
        index_name: str = "workspace-rag",
        batch_size: int = 100,
    ) -> None:
        if not _NAME_RE.match(index_name) or _NAMESPACE_SEPARATOR in index_name:
            raise ValueError(f"Invalid index name: {index_name!r}")
        self._embedding_provider = embedding_provider
        self._client = client
        self._index_name = index_name
        self._batch_size = batch_size

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _collection_name(self, namespace: str) -> str:
        if not namespace or not _NAME_RE.match(namespace):
            raise ValueError(f"Invalid namespace: {namespace!r}")
        return f"{self._index_name}{_NAMESPACE_SEPARATOR}{namespace}"

    def _open_collection(self, name: str, create: bool, metadata: dict[str, Any] | None = None) -> Any:
        if create:
            try:
                return self._client.get_or_create_collection(
                    name=name,
                    metadata=metadata,
                    embedding_function=_NoopEmbeddingFunction(),
                )
            except ValueError:
                # Persisted collection with a different embedding function.
                return self._client.get_or_create_collection(name=name, metadata=metadata)
        try:
            return self._client.get_collection(name=name, embedding_function=_NoopEmbeddingFunction())
        except Exception as exc:
            if _is_not_found(exc):
                raise NotFoundTransient(
                    message=f"Collection {name} does not exist",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise

    def _namespace_collection(self, namespace: str, create: bool = False) -> Any:
        metadata = {"hnsw:space": "cosine", "namespace": namespace} if create else None
        return self._open_collection(self._collection_name(namespace), create, metadata)

    def _collection_names(self) -> list[str]:
        # list_collections() yields names on some chromadb releases, objects on others.
        return [c if isinstance(c, str) else c.name for c in self._client.list_collections()]

    def _namespace_names(self) -> dict[str, str]:
        """Map namespace -> collection name for this index."""
        prefix = f"{self._index_name}{_NAMESPACE_SEPARATOR}"
        return {
            name[len(prefix) :]: name for name in self._collection_names() if name.startswith(prefix)
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write(self, chunks: list[Chunk], namespace: str) -> WriteResult:
        """Embed and upsert *chunks* batch by batch.

        A failing batch is logged and recorded as ``"Batch n: <error>"``;
        later batches are still attempted.
        """
        if not chunks:
            return WriteResult(success=True, documents_written=0, namespace=namespace)

        try:
            collection = self._namespace_collection(namespace, create=True)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB could not open namespace {namespace}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        written = 0
        errors: list[str] = []
        for number, start in enumerate(range(0, len(chunks), self._batch_size), start=1):
            batch = chunks[start : start + self._batch_size]
            try:
                vectors = await self._embedding_provider.embed_documents([c.content for c in batch])
                collection.upsert(
                    ids=[c.id for c in batch],
                    embeddings=vectors,
                    documents=[c.content for c in batch],
                    metadatas=[chunk_to_metadata(c) for c in batch],
                )
                written += len(batch)
            except Exception as exc:
                logger.error(
                    "vector_store_batch_failed",
                    namespace=namespace,
                    batch=number,
                    batch_size=len(batch),
                    error=str(exc),
                )
                errors.append(f"Batch {number}: {exc}")

        logger.info(
            "vector_store_write",
            namespace=namespace,
            chunks=len(chunks),
            written=written,
            failed_batches=len(errors),
        )
        return WriteResult(
            success=not errors,
            documents_written=written,
            namespace=namespace,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query(
        self,
        vector: list[float],
        namespace: str,
        top_k: int = 10,
        filters: list[FilterExpr] | None = None,
        min_score: float = 0.0,
    ) -> list[QueryMatch]:
        """Similarity search within one namespace.

        ``score = clamp(1 - cosine_distance, 0, 1)``; matches under
        *min_score* are dropped.  When list-field predicates are present the
        collection is over-fetched so that post-filtering still leaves up to
        *top_k* results.
        """
        if top_k <= 0:
            return []
        translated = translate_filters(filters)
        try:
            collection = self._namespace_collection(namespace)
        except NotFoundTransient:
            return []

        try:
            count = collection.count()
            if count == 0:
                return []
            fetch_k = top_k * _POST_FILTER_OVERFETCH if translated.post_filters else top_k
            kwargs: dict[str, Any] = {
                "query_embeddings": [vector],
                "n_results": min(fetch_k, count),
                "include": ["documents", "metadatas", "distances"],
            }
            if translated.where:
                kwargs["where"] = translated.where
            results = collection.query(**kwargs)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results.get("ids") else []
        documents = results["documents"][0] if results.get("documents") else [""] * len(ids)
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)
        distances = results["distances"][0] if results.get("distances") else [1.0] * len(ids)

        matches: list[QueryMatch] = []
        for chunk_id, text, meta, distance in zip(ids, documents, metadatas, distances, strict=True):
            score = max(0.0, min(1.0, 1.0 - distance))
            if score < min_score:
                continue
            if not matches_post_filters(meta, translated.post_filters):
                continue
            matches.append(
                QueryMatch(
                    id=chunk_id,
                    score=score,
                    content=text or "",
                    metadata=metadata_from_store(meta),
                )
            )

        matches.sort(key=lambda m: m.score, reverse=True)
        matches = matches[:top_k]
        logger.info(
            "vector_store_query",
            namespace=namespace,
            raw_results=len(ids),
            results=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

    async def query_by_text(
        self,
        text: str,
        namespace: str,
        top_k: int = 10,
        filters: list[FilterExpr] | None = None,
        min_score: float = 0.0,
    ) -> list[QueryMatch]:
        vector = await self._embedding_provider.embed_query(text)
        return await self.query(vector, namespace, top_k=top_k, filters=filters, min_score=min_score)

    async def fetch(
        self,
        filters: list[FilterExpr],
        namespace: str,
        limit: int = 10,
    ) -> list[QueryMatch]:
        """Metadata-only lookup; matches carry ``score=0.0``."""
        translated = translate_filters(filters)
        try:
            collection = self._namespace_collection(namespace)
        except NotFoundTransient:
            return []

        try:
            kwargs: dict[str, Any] = {"include": ["documents", "metadatas"]}
            if translated.where:
                kwargs["where"] = translated.where
            if not translated.post_filters:
                kwargs["limit"] = limit
            page = collection.get(**kwargs)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB fetch failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = page.get("ids") or []
        documents = page.get("documents") or [""] * len(ids)
        metadatas = page.get("metadatas") or [{}] * len(ids)
        matches = [
            QueryMatch(id=chunk_id, score=0.0, content=text or "", metadata=metadata_from_store(meta))
            for chunk_id, text, meta in zip(ids, documents, metadatas, strict=True)
            if matches_post_filters(meta, translated.post_filters)
        ]
        return matches[:limit]

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    async def delete_by_metadata(self, filters: list[FilterExpr], namespace: str) -> None:
        """Delete matching chunks; a missing namespace is a successful no-op."""
        translated = translate_filters(filters)
        if translated.where is None and not translated.post_filters:
            raise ValueError("delete_by_metadata requires at least one filter")
        try:
            collection = self._namespace_collection(namespace)
        except NotFoundTransient:
            logger.info("vector_store_delete_skipped", namespace=namespace, reason="namespace_missing")
            return

        try:
            kwargs: dict[str, Any] = {"include": ["metadatas"]}
            if translated.where:
                kwargs["where"] = translated.where
            page = collection.get(**kwargs)
            ids = [
                chunk_id
                for chunk_id, meta in zip(page.get("ids") or [], page.get("metadatas") or [], strict=True)
                if matches_post_filters(meta, translated.post_filters)
            ]
            if ids:
                collection.delete(ids=ids)
        except Exception as exc:
            if _is_not_found(exc):
                logger.info("vector_store_delete_skipped", namespace=namespace, reason="not_found")
                return
            raise VectorStoreError(
                message=f"ChromaDB delete_by_metadata failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("vector_store_delete_by_metadata", namespace=namespace, deleted=len(ids))

    async def delete_documents(self, ids: list[str], namespace: str) -> None:
        if not ids:
            return
        try:
            collection = self._namespace_collection(namespace)
        except NotFoundTransient:
            return
        try:
            collection.delete(ids=ids)
        except Exception as exc:
            if _is_not_found(exc):
                return
            raise VectorStoreError(
                message=f"ChromaDB delete_documents failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("vector_store_delete_documents", namespace=namespace, count=len(ids))

    async def delete_namespace(self, namespace: str) -> None:
        try:
            self._client.delete_collection(name=self._collection_name(namespace))
        except Exception as exc:
            if _is_not_found(exc):
                return
            raise VectorStoreError(
                message=f"ChromaDB delete_namespace failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("vector_store_delete_namespace", namespace=namespace)

    # ------------------------------------------------------------------
    # Stats and provisioning
    # ------------------------------------------------------------------

    async def get_stats(self) -> IndexStats:
        try:
            counts = {
                namespace: self._open_collection(name, create=False).count()
                for namespace, name in self._namespace_names().items()
            }
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB get_stats failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return IndexStats(
            index_name=self._index_name,
            dimension=self._embedding_provider.get_dimension(),
            total_vector_count=sum(counts.values()),
            namespaces=counts,
        )

    async def list_indexes(self) -> list[str]:
        names = self._collection_names()
        return sorted({name.split(_NAMESPACE_SEPARATOR, 1)[0] for name in names})

    async def index_exists(self) -> bool:
        return self._index_name in self._collection_names()

    async def describe_index(self) -> IndexDescription:
        try:
            registry = self._open_collection(self._index_name, create=False)
        except NotFoundTransient as exc:
            raise VectorStoreError(
                message=f"Index {self._index_name} does not exist",
                provider_name=self.get_provider_name(),
            ) from exc
        meta = registry.metadata or {}
        return IndexDescription(
            name=self._index_name,
            dimension=int(meta.get("dimension", self._embedding_provider.get_dimension())),
            metric=str(meta.get("hnsw:space", "cosine")),
            namespaces=sorted(self._namespace_names()),
        )

    async def create_index_if_not_exists(self, dimension: int | None = None) -> bool:
        if await self.index_exists():
            logger.info("index_exists", index=self._index_name)
            return False
        dimension = dimension or self._embedding_provider.get_dimension()
        self._open_collection(
            self._index_name,
            create=True,
            metadata={"hnsw:space": "cosine", "dimension": dimension},
        )
        logger.info("index_created", index=self._index_name, dimension=dimension, metric="cosine")
        return True

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB server (or local store) responds."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False
