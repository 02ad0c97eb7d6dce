"""Unit tests for the Voyage reranker (HTTP mocked with httpx.MockTransport)."""

from __future__ import annotations

import json

import httpx
import pytest

from workspace_rag.config.settings import Settings
from workspace_rag.providers.rerank.voyage_reranker import VoyageReranker
from workspace_rag.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    defaults = {"embedding_api_key": "pa-test", "rerank_min_score": 0.5}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def _reranker(handler, **overrides) -> VoyageReranker:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VoyageReranker(settings=_settings(**overrides), http_client=client)


@pytest.fixture
def candidates(match_factory):
    return [
        match_factory("a", 0.91, content="alpha"),
        match_factory("b", 0.85, content="beta"),
        match_factory("c", 0.60, content="gamma"),
        match_factory("d", 0.40, content="delta"),
    ]


class TestVoyageReranker:
    def test_requires_api_key(self) -> None:
        with pytest.raises(ConfigurationError):
            VoyageReranker(settings=_settings(embedding_api_key=""), http_client=httpx.AsyncClient())

    def test_provider_name(self) -> None:
        assert _reranker(lambda r: httpx.Response(200)).get_provider_name() == "voyage-rerank-2"

    @pytest.mark.asyncio
    async def test_maps_scores_back_onto_candidates(self, candidates) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"index": 2, "relevance_score": 0.97},
                        {"index": 0, "relevance_score": 0.55},
                        {"index": 1, "relevance_score": 0.12},
                    ]
                },
            )

        ranked = await _reranker(handler).rerank("which greek letter", candidates, top_n=3)

        assert [(m.id, m.score) for m in ranked] == [("c", 0.97), ("a", 0.55)]
        assert ranked[0].content == "gamma"
        body = bodies[0]
        assert body["query"] == "which greek letter"
        assert body["documents"] == ["alpha", "beta", "gamma", "delta"]
        assert body["model"] == "rerank-2"
        assert body["top_k"] == 3

    @pytest.mark.asyncio
    async def test_results_sorted_even_if_api_is_not(self, candidates) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"data": [{"index": 0, "relevance_score": 0.6}, {"index": 3, "relevance_score": 0.9}]},
            )

        ranked = await _reranker(handler).rerank("q", candidates, top_n=2)

        assert [m.id for m in ranked] == ["d", "a"]

    @pytest.mark.asyncio
    async def test_http_error_falls_back_to_vector_order(self, candidates) -> None:
        ranked = await _reranker(lambda r: httpx.Response(503, text="busy")).rerank("q", candidates, top_n=3)

        # Original order, top 3, then the score floor drops nothing here.
        assert [m.id for m in ranked] == ["a", "b", "c"]
        assert ranked[0].score == 0.91

    @pytest.mark.asyncio
    async def test_malformed_body_falls_back(self, candidates) -> None:
        ranked = await _reranker(lambda r: httpx.Response(200, json={"unexpected": True})).rerank(
            "q", candidates, top_n=4
        )

        assert [m.id for m in ranked] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_empty_candidates_make_no_call(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"data": []})

        assert await _reranker(handler).rerank("q", [], top_n=3) == []
        assert calls == []
