"""RAG data models for workspace document indexing.

Defines Pydantic v2 models for the document snapshot handed over by the
surrounding system, the chunks produced from it, the metadata attached to
each chunk, and the results reported by the vector store and sync pipeline.
All models are frozen: a chunk is never mutated after it is produced, it is
superseded wholesale on the next ingestion.

Metadata is exchanged with the vector store using camelCase keys
(``documentId``, ``chunkIndex``...) via field aliases; Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


ContentSource = Literal["transcript", "artifact", "unknown"]


# ---------------------------------------------------------------------------
# Document: the external snapshot that triggers ingestion.
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """A content snapshot of a workspace document, owned by the caller.

    ``metadata`` carries optional, type-specific hints: ``topics`` (list of
    expected transcript topics), ``meetingDate``, ``participants`` and
    ``sourceDocumentIds`` (the transcripts a summary was generated from).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable document identifier.")
    workspace_id: str = Field(default="", description="Owning workspace; the vector-store namespace.")
    content: str = Field(default="", description="Raw document text at the time of save.")
    title: str = Field(default="", description="Human-readable document title.")
    document_type: str | None = Field(
        default=None,
        description='Content type, e.g. "transcript", "summary", "meeting-summary", "context".',
    )
    kind: str = Field(default="text", description="Artifact kind as stored by the host system.")
    created_at: datetime = Field(description="Creation timestamp of the document.")
    created_by_user_id: str = Field(default="", description="User that created the document.")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form, document-type specific hints.",
    )


# ---------------------------------------------------------------------------
# RAGMetadata: attached to every chunk and stored next to its vector.
# ---------------------------------------------------------------------------
class RAGMetadata(BaseModel):
    """Metadata stored with every chunk.

    The first block of fields is present on every chunk regardless of the
    chunking strategy; the optional block depends on the strategy (topic and
    speakers for transcripts, section title for structured documents).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    document_id: str
    document_type: str
    user_id: str
    title: str
    kind: str
    created_at: datetime
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(ge=1)
    # sha256 of document_id; groups a document's chunks for neighbour lookups.
    file_hash: str
    content_source: ContentSource

    topic: str | None = None
    speakers: list[str] | None = None
    start_time: float | None = Field(default=None, description="Offset of the first turn, seconds.")
    end_time: float | None = Field(default=None, description="Offset of the last turn, seconds.")
    section_title: str | None = None
    source_transcript_ids: list[str] | None = None
    meeting_date: str | None = Field(default=None, description="ISO-8601 meeting date.")
    participants: list[str] | None = None

    @model_validator(mode="after")
    def _check_chunk_index(self) -> RAGMetadata:
        if self.chunk_index >= self.total_chunks:
            raise ValueError(
                f"chunk_index {self.chunk_index} out of range for total_chunks {self.total_chunks}"
            )
        return self

    def to_store_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, dropping unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Chunk(BaseModel):
    """One independently embedded, retrievable slice of a document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Deterministic id, e.g. ``doc-1-section-0``.")
    content: str
    metadata: RAGMetadata


# ---------------------------------------------------------------------------
# Vector store results
# ---------------------------------------------------------------------------
class QueryMatch(BaseModel):
    """A scored chunk returned by a similarity search or metadata fetch."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = Field(description="Cosine similarity in [0, 1]; higher is closer.")
    content: str
    metadata: RAGMetadata


class WriteResult(BaseModel):
    """Outcome of writing a chunk set into one namespace.

    ``success`` is ``False`` when any batch failed; ``documents_written``
    still counts the batches that went through.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    documents_written: int = 0
    namespace: str
    errors: list[str] = Field(default_factory=list)


class IndexStats(BaseModel):
    """Vector counts for an index, overall and per namespace."""

    model_config = ConfigDict(frozen=True)

    index_name: str
    dimension: int
    total_vector_count: int = 0
    namespaces: dict[str, int] = Field(default_factory=dict)


class IndexDescription(BaseModel):
    """Provisioning details for an index."""

    model_config = ConfigDict(frozen=True)

    name: str
    dimension: int
    metric: str = "cosine"
    namespaces: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Sync pipeline outcome
# ---------------------------------------------------------------------------
class SyncStatus(str, Enum):  # noqa: UP042
    """Terminal state of one sync or delete call."""

    INDEXED = "indexed"
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


class SyncOutcome(BaseModel):
    """What a sync/delete call did, returned instead of raising."""

    model_config = ConfigDict(frozen=True)

    status: SyncStatus
    document_id: str
    namespace: str = ""
    chunks_written: int = 0
    errors: list[str] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is not SyncStatus.FAILED
