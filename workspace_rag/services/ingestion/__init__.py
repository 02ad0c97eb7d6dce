"""Document ingestion: parsing, chunking and syncing into the vector store."""

from workspace_rag.services.ingestion.chunker import ChunkingEngine, ChunkingStrategy, resolve_strategy
from workspace_rag.services.ingestion.sync_service import SyncService
from workspace_rag.services.ingestion.topic_segmenter import (
    HeuristicTopicSegmenter,
    LLMTopicSegmenter,
)

__all__ = [
    "ChunkingEngine",
    "ChunkingStrategy",
    "HeuristicTopicSegmenter",
    "LLMTopicSegmenter",
    "SyncService",
    "resolve_strategy",
]
