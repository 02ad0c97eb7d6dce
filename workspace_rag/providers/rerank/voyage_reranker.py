"""Voyage AI reranker adapter.

Calls ``POST /rerank`` with the query and candidate texts and maps the
returned ``index`` / ``relevance_score`` pairs back onto the candidates.
Results under the score threshold are dropped.

A failed rerank call does not fail the search: the candidates keep their
vector-similarity order, truncated to ``top_n`` and thresholded the same way.
"""

from __future__ import annotations

import httpx
import structlog

from workspace_rag.config.settings import Settings
from workspace_rag.interfaces.reranker_provider import IRerankerProvider
from workspace_rag.models.rag import QueryMatch
from workspace_rag.utils.errors import ConfigurationError, RerankError

logger = structlog.get_logger(logger_name=__name__)


class VoyageReranker(IRerankerProvider):
    """Cross-encoder reranking via the Voyage rerank API.

    Shares the embedding API key and the injected ``httpx.AsyncClient``.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        if not settings.embedding_api_key:
            raise ConfigurationError(
                message="EMBEDDING_API_KEY is required for the reranker",
                provider_name="voyage",
            )
        self._http = http_client
        self._api_key = settings.embedding_api_key
        self._url = f"{settings.embedding_base_url.rstrip('/')}/rerank"
        self._model = settings.rerank_model
        self._min_score = settings.rerank_min_score
        self._timeout = settings.embedding_timeout_seconds

    async def rerank(
        self,
        query: str,
        matches: list[QueryMatch],
        top_n: int,
    ) -> list[QueryMatch]:
        if not matches:
            return []
        try:
            ranked = await self._call_api(query, matches, top_n)
        except RerankError as exc:
            logger.warning("rerank_failed_fallback", error=str(exc), candidates=len(matches))
            return [m for m in matches[:top_n] if m.score >= self._min_score]

        kept = [m for m in ranked if m.score >= self._min_score]
        logger.info(
            "rerank_complete",
            model=self._model,
            candidates=len(matches),
            returned=len(ranked),
            kept=len(kept),
        )
        return kept

    async def _call_api(self, query: str, matches: list[QueryMatch], top_n: int) -> list[QueryMatch]:
        body = {
            "query": query,
            "documents": [m.content for m in matches],
            "model": self._model,
            "top_k": top_n,
            "return_documents": False,
            "truncation": True,
        }
        try:
            response = await self._http.post(
                self._url,
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            results = response.json()["data"]
            ranked = [
                matches[item["index"]].model_copy(update={"score": float(item["relevance_score"])})
                for item in results
            ]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            raise RerankError(
                message=f"Rerank request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        ranked.sort(key=lambda m: m.score, reverse=True)
        return ranked[:top_n]

    def get_provider_name(self) -> str:
        return f"voyage-{self._model}"
