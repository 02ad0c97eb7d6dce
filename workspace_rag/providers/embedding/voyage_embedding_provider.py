"""Voyage AI embedding provider adapter.

Calls the Voyage REST endpoint ``POST /embeddings`` through an injected
``httpx.AsyncClient`` to implement :class:`IEmbeddingProvider`.

The API enforces two per-call limits: at most 1000 inputs, and about 120K
tokens summed over all inputs.  :meth:`embed_documents` plans sub-batches
against both limits, sends them one after another with a short pause, and
re-assembles the vectors by the ``index`` field of each response.  A batch
the provider still rejects as too large is halved and retried once.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any

import httpx
import structlog

from workspace_rag.config.settings import Settings
from workspace_rag.interfaces.embedding_provider import IEmbeddingProvider
from workspace_rag.utils.errors import ConfigurationError, EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DIMENSION = 1024
_DEFAULT_DTYPE = "float"


def estimate_tokens(text: str) -> int:
    """Approximate token count (``len / 4``); never less than 1."""
    return max(1, math.ceil(len(text) / 4))


class VoyageEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by Voyage ``voyage-3-large`` (1024 dims).

    Parameters
    ----------
    settings:
        Supplies the API key, model, output dimension/dtype and batch limits.
    http_client:
        Shared async HTTP client; owned by the composition root.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        if not settings.embedding_api_key:
            raise ConfigurationError(
                message="EMBEDDING_API_KEY is required for the embedding provider",
                provider_name="voyage",
            )
        self._http = http_client
        self._api_key = settings.embedding_api_key
        self._url = f"{settings.embedding_base_url.rstrip('/')}/embeddings"
        self._model = settings.embedding_model
        self._dimension = settings.embedding_dimension
        self._output_dtype = settings.embedding_output_dtype
        self._max_batch_size = settings.embedding_max_batch_size
        self._max_batch_tokens = settings.embedding_max_batch_tokens
        self._batch_delay = settings.embedding_batch_delay_seconds
        self._timeout = settings.embedding_timeout_seconds

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in document mode, splitting into sub-batches as needed."""
        if not texts:
            return []

        batches = self._plan_batches(texts)
        if len(batches) > 1:
            logger.info(
                "embedding_batches_planned",
                texts=len(texts),
                batches=len(batches),
            )

        vectors: list[list[float]] = []
        for number, batch in enumerate(batches):
            if number > 0:
                await asyncio.sleep(self._batch_delay)
            vectors.extend(await self._embed_with_retry(batch))
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single search string in query mode."""
        vectors = await self._request(text, input_type="query", expected=1)
        return vectors[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._model

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Batching
    # ------------------------------------------------------------------

    def _plan_batches(self, texts: list[str]) -> list[list[str]]:
        """Greedily pack *texts* into batches under both per-call limits."""
        batches: list[list[str]] = []
        current: list[str] = []
        current_tokens = 0
        for text in texts:
            tokens = estimate_tokens(text)
            full = len(current) >= self._max_batch_size
            over_budget = current_tokens + tokens > self._max_batch_tokens
            if current and (full or over_budget):
                batches.append(current)
                current, current_tokens = [], 0
            current.append(text)
            current_tokens += tokens
        if current:
            batches.append(current)
        return batches

    async def _embed_with_retry(self, batch: list[str]) -> list[list[float]]:
        """Send *batch*; on a limit rejection, resend it as two halves once."""
        try:
            return await self._request(batch, input_type="document", expected=len(batch))
        except EmbeddingError as exc:
            if not exc.is_limit_error or len(batch) < 2:
                raise
            half = math.ceil(len(batch) / 2)
            logger.warning(
                "embedding_batch_halved",
                batch_size=len(batch),
                retry_size=half,
                status=exc.status_code,
            )
            vectors: list[list[float]] = []
            for start in range(0, len(batch), half):
                if start:
                    await asyncio.sleep(self._batch_delay)
                part = batch[start : start + half]
                vectors.extend(
                    await self._request(part, input_type="document", expected=len(part))
                )
            return vectors

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _build_body(self, payload: str | list[str], input_type: str) -> dict[str, Any]:
        body: dict[str, Any] = {
            "input": payload,
            "model": self._model,
            "input_type": input_type,
            "truncation": True,
        }
        if self._dimension != _DEFAULT_DIMENSION:
            body["output_dimension"] = self._dimension
        if self._output_dtype != _DEFAULT_DTYPE:
            body["output_dtype"] = self._output_dtype
        return body

    async def _request(
        self,
        payload: str | list[str],
        input_type: str,
        expected: int,
    ) -> list[list[float]]:
        """POST one embeddings call and return vectors ordered by ``index``."""
        try:
            response = await self._http.post(
                self._url,
                json=self._build_body(payload, input_type),
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise EmbeddingError(
                message=f"Embedding request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code >= 400:
            logger.error(
                "embedding_api_error",
                status=response.status_code,
                status_text=response.reason_phrase,
                input_type=input_type,
                inputs=expected,
            )
            raise EmbeddingError(
                message=f"Embedding API error: {response.status_code} {response.reason_phrase}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=response.text,
            )

        try:
            data = response.json()
            items = sorted(data["data"], key=lambda item: item["index"])
            vectors = [item["embedding"] for item in items]
        except (ValueError, KeyError, TypeError) as exc:
            raise EmbeddingError(
                message=f"Malformed embedding response: {exc}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
                body=response.text[:500],
            ) from exc

        if len(vectors) != expected:
            raise EmbeddingError(
                message=f"Expected {expected} embeddings, got {len(vectors)}",
                provider_name=self.get_provider_name(),
            )

        logger.debug(
            "embedding_batch",
            model=self._model,
            input_type=input_type,
            inputs=expected,
            tokens=(data.get("usage") or {}).get("total_tokens"),
        )
        return vectors
