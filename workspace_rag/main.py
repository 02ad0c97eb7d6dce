"""Composition root and the contract exposed to the host application.

Wires settings, the shared ``httpx.AsyncClient``, providers and services
into one process-wide component set, built lazily on first use.  The host
calls three entry points:

* :func:`ingest` -- fire-and-forget re-indexing after a document save.
* :func:`delete` -- un-index a deleted document.
* :func:`search` -- agent tool entry point returning a JSON-ready dict.

None of them raise, including when the components cannot be built
(missing ``EMBEDDING_API_KEY``, unreachable Chroma server).  The next call
retries the build.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from workspace_rag.config.settings import Settings
from workspace_rag.interfaces.embedding_provider import IEmbeddingProvider
from workspace_rag.interfaces.llm_provider import ILLMProvider
from workspace_rag.interfaces.topic_segmenter import ITopicSegmenter
from workspace_rag.models.rag import Document, SyncOutcome, SyncStatus
from workspace_rag.models.search import QueryRequest, SearchResponse
from workspace_rag.providers.cache.memory_cache import MemoryCacheProvider
from workspace_rag.providers.embedding.voyage_embedding_provider import VoyageEmbeddingProvider
from workspace_rag.providers.llm.anthropic_provider import AnthropicLLMProvider
from workspace_rag.providers.llm.openai_provider import OpenAILLMProvider
from workspace_rag.providers.rerank.voyage_reranker import VoyageReranker
from workspace_rag.providers.vector_store.chromadb_provider import ChromaVectorStore, build_chroma_client
from workspace_rag.services.ingestion.chunker import ChunkingEngine
from workspace_rag.services.ingestion.sync_service import SyncService
from workspace_rag.services.ingestion.topic_segmenter import HeuristicTopicSegmenter, LLMTopicSegmenter
from workspace_rag.services.retrieval_service import RetrievalService

_logger = structlog.get_logger(logger_name=__name__)

_components: dict[str, Any] | None = None
# Strong references to in-flight background tasks; the loop only keeps weak ones.
_background_tasks: set[asyncio.Task[Any]] = set()


def _track(task: asyncio.Task[Any]) -> asyncio.Task[Any]:
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider | None:
    """Select the first configured LLM provider: Anthropic, then OpenAI."""
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return None


def _build_segmenter(app_settings: Settings) -> ITopicSegmenter:
    llm = _build_llm_provider(app_settings)
    if llm is None:
        _logger.warning("no_llm_configured", msg="Transcripts will be segmented heuristically.")
        return HeuristicTopicSegmenter()
    return LLMTopicSegmenter(llm=llm)


def build_vector_store(app_settings: Settings, embedding_provider: IEmbeddingProvider) -> ChromaVectorStore:
    """Build the Chroma store for the configured index."""
    client = build_chroma_client(
        persist_directory=app_settings.vector_store_persist_dir,
        host=app_settings.vector_store_host,
        port=app_settings.vector_store_port,
        api_key=app_settings.vector_store_api_key,
        ssl=app_settings.vector_store_ssl,
    )
    return ChromaVectorStore(
        embedding_provider=embedding_provider,
        client=client,
        index_name=app_settings.vector_store_index_name,
        batch_size=app_settings.vector_store_write_batch_size,
    )


def _discard_client(http_client: httpx.AsyncClient) -> None:
    """Close *http_client* after a failed build, with or without a running loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(http_client.aclose())
        return
    _track(loop.create_task(http_client.aclose(), name="rag-close-http-client"))


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service; returns a flat dict of components."""
    http_client = httpx.AsyncClient(timeout=app_settings.embedding_timeout_seconds)
    try:
        return _build_services(app_settings, http_client)
    except Exception:
        _discard_client(http_client)
        raise


def _build_services(app_settings: Settings, http_client: httpx.AsyncClient) -> dict[str, Any]:
    embedding_provider = VoyageEmbeddingProvider(settings=app_settings, http_client=http_client)
    vector_store = build_vector_store(app_settings, embedding_provider)

    reranker = None
    if app_settings.rerank_enabled:
        reranker = VoyageReranker(settings=app_settings, http_client=http_client)

    cache = MemoryCacheProvider(
        max_size=app_settings.rag_cache_max_entries,
        ttl=app_settings.rag_cache_ttl_seconds,
    )

    sync_service = SyncService(
        chunker=ChunkingEngine(segmenter=_build_segmenter(app_settings)),
        vector_store=vector_store,
    )
    retrieval_service = RetrievalService(
        vector_store=vector_store,
        embedding_provider=embedding_provider,
        reranker=reranker,
        cache=cache,
        min_score=app_settings.rag_min_score,
        neighbor_score_factor=app_settings.rag_neighbor_score_factor,
    )

    _logger.info(
        "components_built",
        embedding_provider=embedding_provider.get_provider_name(),
        vector_store=vector_store.get_provider_name(),
        index=app_settings.vector_store_index_name,
        reranker=reranker.get_provider_name() if reranker else None,
    )
    return {
        "settings": app_settings,
        "http_client": http_client,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "reranker": reranker,
        "cache": cache,
        "sync_service": sync_service,
        "retrieval_service": retrieval_service,
    }


def get_components(custom_settings: Settings | None = None) -> dict[str, Any]:
    """Return the process-wide components, building them on first call."""
    global _components
    if _components is None:
        _components = _build_all(custom_settings or Settings())
    return _components


async def shutdown() -> None:
    """Wait for in-flight ingestions, then close the shared HTTP client."""
    global _components
    if _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)
    if _components is not None:
        await _components["http_client"].aclose()
        _components = None


# ---------------------------------------------------------------------------
# Host-facing contract
# ---------------------------------------------------------------------------


def ingest(document: Document) -> asyncio.Task[SyncOutcome] | None:
    """Schedule re-indexing of *document* and return immediately.

    Must be called from a running event loop.  The outcome is logged by
    the sync service; the returned task is only useful to tests and
    shutdown hooks that want to await it.  Returns ``None`` when the
    components cannot be built.
    """
    try:
        sync_service: SyncService = get_components()["sync_service"]
    except Exception as exc:
        _logger.error(
            "ingest_unavailable",
            document_id=document.id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return None
    return _track(asyncio.create_task(sync_service.sync(document), name=f"rag-ingest-{document.id}"))


async def delete(document_id: str, namespace: str) -> SyncOutcome:
    """Remove a deleted document's chunks; never raises."""
    try:
        sync_service: SyncService = get_components()["sync_service"]
    except Exception as exc:
        _logger.error(
            "delete_unavailable",
            document_id=document_id,
            namespace=namespace,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return SyncOutcome(
            status=SyncStatus.FAILED,
            document_id=document_id,
            namespace=namespace,
            errors=[str(exc)],
        )
    return await sync_service.delete(document_id, namespace)


async def search(params: dict[str, Any]) -> dict[str, Any]:
    """Agent tool entry point: validate *params* and run the search.

    Invalid parameters and an unbuildable component set produce the same
    failure payload as a failed search.
    """
    try:
        request = QueryRequest.model_validate(params)
    except ValueError as exc:
        return {"success": False, "error": str(exc), "query": str(params.get("query", ""))}
    try:
        retrieval_service: RetrievalService = get_components()["retrieval_service"]
    except Exception as exc:
        _logger.error("search_unavailable", namespace=request.namespace, error=str(exc))
        return SearchResponse(success=False, query=request.query, error=str(exc)).to_tool_result()
    response = await retrieval_service.search(request)
    return response.to_tool_result()
