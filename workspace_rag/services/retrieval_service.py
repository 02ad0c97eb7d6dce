"""Semantic search over a workspace namespace, exposed as an agent tool.

Flow for one :class:`QueryRequest`:

1. Cache lookup on the serialized request.
2. Translate content type and :class:`SearchFilter` into filter expressions.
3. Vector search, over-fetching ``2 * top_k`` when a reranker will run.
4. Optional rerank down to ``top_k``.
5. Optional context expansion with each match's neighbouring chunks.
6. Format an LLM-ready text block, cache the response and return it.

Errors never escape :meth:`RetrievalService.search`; they become a failed
:class:`SearchResponse` the agent can explain to the user.
"""

from __future__ import annotations

import time

import structlog

from workspace_rag.interfaces.cache_provider import ICacheProvider
from workspace_rag.interfaces.embedding_provider import IEmbeddingProvider
from workspace_rag.interfaces.reranker_provider import IRerankerProvider
from workspace_rag.interfaces.vector_store_provider import IVectorStoreProvider
from workspace_rag.models.filters import Equals, FilterExpr, In, Range
from workspace_rag.models.rag import QueryMatch
from workspace_rag.models.search import MatchPreview, QueryRequest, SearchResponse

logger = structlog.get_logger(logger_name=__name__)

_PREVIEW_CHARS = 200
_EMPTY_RESULT = "No relevant content found."
_RESULT_SEPARATOR = "\n---\n\n"
_SUMMARY_TYPES = ["summary", "meeting-summary"]


def build_filters(request: QueryRequest) -> list[FilterExpr]:
    """Translate the request's content type and filter into predicates."""
    filters: list[FilterExpr] = []
    if request.content_type == "transcript":
        filters.append(Equals(field="documentType", value="transcript"))
    elif request.content_type == "summary":
        filters.append(In(field="documentType", values=list(_SUMMARY_TYPES)))

    narrowing = request.filter
    if narrowing is None:
        return filters
    if narrowing.source:
        filters.append(Equals(field="documentId", value=narrowing.source))
    if narrowing.topics:
        filters.append(In(field="topic", values=list(narrowing.topics)))
    if narrowing.speakers:
        filters.append(In(field="speakers", values=list(narrowing.speakers)))
    if narrowing.date_range and (narrowing.date_range.start or narrowing.date_range.end):
        filters.append(Range(field="createdAt", gte=narrowing.date_range.start, lte=narrowing.date_range.end))
    return filters


def format_results(matches: list[QueryMatch]) -> str:
    """Render matches as numbered blocks with a short provenance header."""
    if not matches:
        return _EMPTY_RESULT

    blocks: list[str] = []
    for n, match in enumerate(matches, start=1):
        meta = match.metadata
        header = f"[Result {n}]"
        if meta.content_source == "transcript" and meta.speakers:
            header += f" ({', '.join(meta.speakers)})"
        if meta.topic:
            header += f" - Topic: {meta.topic}"
        source = meta.section_title or meta.title
        if source:
            header += f" - Source: {source}"
        blocks.append(f"{header}\n{match.content}")
    return _RESULT_SEPARATOR.join(blocks)


def preview(match: QueryMatch) -> MatchPreview:
    content = match.content
    if len(content) > _PREVIEW_CHARS:
        content = content[:_PREVIEW_CHARS] + "..."
    return MatchPreview(id=match.id, score=match.score, content=content, metadata=match.metadata)


class RetrievalService:
    """Runs cached, optionally reranked and context-expanded searches.

    Parameters
    ----------
    vector_store:
        Store holding the workspace namespaces.
    embedding_provider:
        Embeds the query text (query mode).
    reranker:
        Optional second-pass reranker; ``None`` disables reranking.
    cache:
        Optional response cache keyed by the full serialized request.
    min_score:
        Similarity floor applied by the vector store.
    neighbor_score_factor:
        Multiplier applied to the parent match score for expanded neighbours.
    """

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        embedding_provider: IEmbeddingProvider,
        reranker: IRerankerProvider | None = None,
        cache: ICacheProvider | None = None,
        min_score: float = 0.5,
        neighbor_score_factor: float = 0.8,
    ) -> None:
        self._store = vector_store
        self._embedder = embedding_provider
        self._reranker = reranker
        self._cache = cache
        self._min_score = min_score
        self._neighbor_factor = neighbor_score_factor

    async def search(self, request: QueryRequest) -> SearchResponse:
        start = time.monotonic()
        log = logger.bind(namespace=request.namespace, query_length=len(request.query))
        try:
            key = request.cache_key()
            if self._cache is not None:
                cached = await self._cache.get(key)
                if cached:
                    log.debug("search_cache_hit")
                    return SearchResponse.model_validate_json(cached)

            response = await self._run(request, start)

            if self._cache is not None:
                await self._cache.set(key, response.model_dump_json())
            log.info(
                "search_complete",
                matches=response.match_count,
                duration=response.duration,
                reranked=self._should_rerank(request),
                expanded=request.expand_context,
            )
            return response
        except Exception as exc:
            log.error("search_failed", error=str(exc), error_type=type(exc).__name__)
            return SearchResponse(success=False, query=request.query, error=str(exc))

    def _should_rerank(self, request: QueryRequest) -> bool:
        return request.use_reranking and self._reranker is not None

    async def _run(self, request: QueryRequest, start: float) -> SearchResponse:
        rerank = self._should_rerank(request)
        fetch_k = request.top_k * 2 if rerank else request.top_k

        vector = await self._embedder.embed_query(request.query)
        matches = await self._store.query(
            vector,
            request.namespace,
            top_k=fetch_k,
            filters=build_filters(request) or None,
            min_score=self._min_score,
        )

        if rerank and matches:
            assert self._reranker is not None
            matches = await self._reranker.rerank(request.query, matches, top_n=request.top_k)
        else:
            matches = matches[: request.top_k]

        if request.expand_context and matches:
            matches = await self._expand_context(matches, request.namespace)

        elapsed_ms = round((time.monotonic() - start) * 1000)
        return SearchResponse(
            success=True,
            query=request.query,
            namespace=request.namespace,
            match_count=len(matches),
            duration=f"{elapsed_ms}ms",
            content=format_results(matches),
            matches=matches,
            previews=[preview(m) for m in matches],
        )

    async def _expand_context(self, matches: list[QueryMatch], namespace: str) -> list[QueryMatch]:
        """Add the chunks directly before and after each match.

        Neighbours inherit the parent's score scaled down; a chunk already
        present keeps its own entry.  The merged set reads in document
        order.
        """
        merged: dict[str, QueryMatch] = {m.id: m for m in matches}
        for match in matches:
            meta = match.metadata
            neighbours = [i for i in (meta.chunk_index - 1, meta.chunk_index + 1) if 0 <= i < meta.total_chunks]
            if not neighbours:
                continue
            try:
                found = await self._store.fetch(
                    [Equals(field="fileHash", value=meta.file_hash), In(field="chunkIndex", values=neighbours)],
                    namespace,
                    limit=len(neighbours),
                )
            except Exception as exc:
                logger.warning("context_expansion_failed", match_id=match.id, error=str(exc))
                continue
            for neighbour in found:
                if neighbour.id not in merged:
                    merged[neighbour.id] = neighbour.model_copy(
                        update={"score": match.score * self._neighbor_factor}
                    )

        return sorted(merged.values(), key=lambda m: (m.metadata.file_hash, m.metadata.chunk_index))
