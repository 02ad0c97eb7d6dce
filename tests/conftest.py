"""Shared pytest fixtures for the workspace-rag test suite."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from workspace_rag.config.settings import Settings
from workspace_rag.interfaces.embedding_provider import IEmbeddingProvider
from workspace_rag.models.rag import Chunk, Document, QueryMatch, RAGMetadata
from workspace_rag.providers.vector_store.chromadb_provider import ChromaVectorStore, build_chroma_client

_EMBEDDING_DIM = 16


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Deterministic vector with positive components derived from sha256(text).

    Positive components keep the cosine similarity of unrelated texts well
    above zero, so score thresholds behave like they do with real
    embeddings; identical texts still score ~1.0.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim:
        raw += hashlib.sha256(raw).digest()
    values = [(b + 1) / 256 for b in raw[:dim]]
    magnitude = sum(v * v for v in values) ** 0.5
    return [v / magnitude for v in values]


class FakeEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider that records its calls."""

    def __init__(self) -> None:
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [_hash_to_vector(t) for t in texts]

    async def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return _hash_to_vector(text)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Settings / providers
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's ``.env``."""
    defaults: dict[str, Any] = {
        "embedding_api_key": "pa-test",
        "embedding_batch_delay_seconds": 0.0,
        "anthropic_api_key": "",
        "openai_api_key": "",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def fake_embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def chroma_store(tmp_path: Path, fake_embedder: FakeEmbeddingProvider) -> ChromaVectorStore:
    """A real embedded ChromaDB store under ``tmp_path``."""
    client = build_chroma_client(persist_directory=str(tmp_path / "chroma"))
    return ChromaVectorStore(embedding_provider=fake_embedder, client=client, index_name="test-index")


# ---------------------------------------------------------------------------
# Documents and chunks
# ---------------------------------------------------------------------------

CREATED_AT = datetime(2024, 9, 11, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_document() -> Callable[..., Document]:
    def _make(
        doc_id: str = "doc-1",
        content: str = "# Intro\nHello",
        document_type: str | None = "summary",
        workspace_id: str = "ws-1",
        title: str = "Weekly Sync",
        **extra: Any,
    ) -> Document:
        return Document(
            id=doc_id,
            workspace_id=workspace_id,
            content=content,
            title=title,
            document_type=document_type,
            created_at=extra.pop("created_at", CREATED_AT),
            created_by_user_id=extra.pop("created_by_user_id", "user-1"),
            **extra,
        )

    return _make


def make_metadata(**overrides: Any) -> RAGMetadata:
    fields: dict[str, Any] = {
        "document_id": "doc-1",
        "document_type": "summary",
        "user_id": "user-1",
        "title": "Weekly Sync",
        "kind": "text",
        "created_at": CREATED_AT,
        "chunk_index": 0,
        "total_chunks": 1,
        "file_hash": hashlib.sha256(b"doc-1").hexdigest(),
        "content_source": "artifact",
    }
    fields.update(overrides)
    return RAGMetadata(**fields)


def make_chunk(chunk_id: str = "doc-1-section-0", content: str = "Some content", **meta: Any) -> Chunk:
    return Chunk(id=chunk_id, content=content, metadata=make_metadata(**meta))


def make_match(chunk_id: str, score: float, content: str = "text", **meta: Any) -> QueryMatch:
    return QueryMatch(id=chunk_id, score=score, content=content, metadata=make_metadata(**meta))


# ---------------------------------------------------------------------------
# Raw transcript / summary content
# ---------------------------------------------------------------------------


@pytest.fixture
def webvtt_transcript() -> str:
    return (
        "WEBVTT\n"
        "\n"
        "1\n"
        "00:00:01.000 --> 00:00:04.000\n"
        "Alice: Let's discuss the budget\n"
        "\n"
        "2\n"
        "00:00:05.000 --> 00:00:09.000\n"
        "Bob: Marketing went over by 15%\n"
        "\n"
        "3\n"
        "00:00:10.500 --> 00:00:12.000\n"
        "Alice: Now about the new feature\n"
        "\n"
        "4\n"
        "00:01:02.000 --> 00:01:05.000\n"
        "Bob: Authentication is ready\n"
    )


@pytest.fixture
def fathom_transcript() -> str:
    return (
        "Weekly Sync - September 11\n"
        "VIEW RECORDING - 32 mins\n"
        "\n"
        "0:00 - Alice Smith (Acme)\n"
        "Welcome everyone.\n"
        "\n"
        "0:42 - Bob Jones (Acme)\n"
        "Thanks, quick update on hiring.\n"
        "\n"
        "1:05:10 - Alice Smith (Acme)\n"
        "Let's wrap up.\n"
    )


@pytest.fixture
def weekly_sync_summary() -> str:
    return (
        "# Overview\n"
        "**Date:** September 11, 2024\n"
        "**Participants:** Alice, Bob\n"
        "The team reviewed weekly sync topics.\n"
        "\n"
        "## Decisions\n"
        "Ship the authentication feature next sprint.\n"
        "\n"
        "## Action Items\n"
        "- Alice drafts the release notes\n"
        "- Bob updates the budget sheet\n"
    )


@pytest.fixture
def metadata_factory() -> Callable[..., RAGMetadata]:
    return make_metadata


@pytest.fixture
def chunk_factory() -> Callable[..., Chunk]:
    return make_chunk


@pytest.fixture
def match_factory() -> Callable[..., QueryMatch]:
    return make_match
