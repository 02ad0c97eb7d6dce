"""Unit tests for the document, metadata, filter and search models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from workspace_rag.models.filters import Equals, In, Range
from workspace_rag.models.rag import SyncOutcome, SyncStatus
from workspace_rag.models.search import QueryRequest, SearchResponse


class TestRAGMetadata:
    def test_store_dict_uses_camel_case_and_drops_none(self, metadata_factory) -> None:
        stored = metadata_factory(topic="Budget", speakers=["Alice"]).to_store_dict()

        assert stored["documentId"] == "doc-1"
        assert stored["chunkIndex"] == 0
        assert stored["totalChunks"] == 1
        assert stored["contentSource"] == "artifact"
        assert stored["speakers"] == ["Alice"]
        assert "sectionTitle" not in stored
        assert "meetingDate" not in stored

    def test_accepts_camel_case_keys(self, metadata_factory) -> None:
        stored = metadata_factory(chunk_index=1, total_chunks=3).to_store_dict()
        assert type(metadata_factory()).model_validate(stored).chunk_index == 1

    @pytest.mark.parametrize(("index", "total"), [(1, 1), (5, 3)])
    def test_chunk_index_below_total(self, metadata_factory, index: int, total: int) -> None:
        with pytest.raises(ValidationError, match="out of range"):
            metadata_factory(chunk_index=index, total_chunks=total)

    def test_total_chunks_positive(self, metadata_factory) -> None:
        with pytest.raises(ValidationError):
            metadata_factory(chunk_index=0, total_chunks=0)

    def test_unknown_content_source_rejected(self, metadata_factory) -> None:
        with pytest.raises(ValidationError):
            metadata_factory(content_source="email")

    def test_frozen(self, metadata_factory) -> None:
        meta = metadata_factory()
        with pytest.raises(ValidationError):
            meta.title = "changed"


class TestFilters:
    def test_range_needs_a_bound(self) -> None:
        with pytest.raises(ValidationError, match="at least one"):
            Range(field="createdAt")

    def test_range_single_bound(self) -> None:
        bound = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert Range(field="createdAt", lte=bound).gte is None

    def test_in_requires_values(self) -> None:
        with pytest.raises(ValidationError):
            In(field="topic", values=[])

    def test_equality(self) -> None:
        assert Equals(field="documentId", value="a") == Equals(field="documentId", value="a")


class TestQueryRequest:
    def test_defaults(self) -> None:
        request = QueryRequest(query="budget", namespace="ws-1")
        assert request.top_k == 5
        assert request.content_type == "all"
        assert request.expand_context is False
        assert request.use_reranking is True

    @pytest.mark.parametrize("top_k", [0, 21])
    def test_top_k_bounds(self, top_k: int) -> None:
        with pytest.raises(ValidationError):
            QueryRequest(query="q", namespace="ws-1", top_k=top_k)

    def test_blank_query_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QueryRequest(query="", namespace="ws-1")

    def test_unknown_content_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            QueryRequest(query="q", namespace="ws-1", content_type="email")

    def test_cache_key_covers_every_field(self) -> None:
        base = QueryRequest(query="q", namespace="ws-1")
        assert base.cache_key() == QueryRequest(query="q", namespace="ws-1").cache_key()
        assert base.cache_key() != QueryRequest(query="q", namespace="ws-2").cache_key()
        assert base.cache_key() != QueryRequest(query="q", namespace="ws-1", expand_context=True).cache_key()


class TestSearchResponse:
    def test_failure_payload_is_minimal(self) -> None:
        response = SearchResponse(success=False, query="q", error="boom")
        assert response.to_tool_result() == {"success": False, "error": "boom", "query": "q"}

    def test_success_payload_keys(self) -> None:
        response = SearchResponse(success=True, query="q", namespace="ws-1", duration="3ms")
        assert set(response.to_tool_result()) == {
            "success",
            "query",
            "matchCount",
            "namespace",
            "duration",
            "content",
            "matches",
        }


class TestSyncOutcome:
    @pytest.mark.parametrize(
        ("status", "ok"),
        [
            (SyncStatus.INDEXED, True),
            (SyncStatus.DELETED, True),
            (SyncStatus.SKIPPED, True),
            (SyncStatus.FAILED, False),
        ],
    )
    def test_ok(self, status: SyncStatus, ok: bool) -> None:
        assert SyncOutcome(status=status, document_id="d").ok is ok
