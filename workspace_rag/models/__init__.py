"""Pydantic models for documents, chunks, filters and search results."""

from workspace_rag.models.filters import Equals, FilterExpr, In, Range
from workspace_rag.models.rag import (
    Chunk,
    Document,
    IndexDescription,
    IndexStats,
    QueryMatch,
    RAGMetadata,
    SyncOutcome,
    SyncStatus,
    WriteResult,
)
from workspace_rag.models.search import (
    DateRange,
    MatchPreview,
    QueryRequest,
    SearchFilter,
    SearchResponse,
)
from workspace_rag.models.transcript import GENERAL_DISCUSSION, TopicSegment, TranscriptTurn

__all__ = [
    "GENERAL_DISCUSSION",
    "Chunk",
    "DateRange",
    "Document",
    "Equals",
    "FilterExpr",
    "In",
    "IndexDescription",
    "IndexStats",
    "MatchPreview",
    "QueryMatch",
    "QueryRequest",
    "RAGMetadata",
    "Range",
    "SearchFilter",
    "SearchResponse",
    "SyncOutcome",
    "SyncStatus",
    "TopicSegment",
    "TranscriptTurn",
    "WriteResult",
]
