"""Strategy-based chunking of workspace documents.

Every document type resolves to exactly one of three strategies through
:data:`STRATEGY_BY_DOCUMENT_TYPE`:

* **ai-transcript** -- transcripts are parsed into speaker turns and grouped
  into topic segments by an :class:`ITopicSegmenter`; one chunk per segment.
* **section-based** -- markdown documents are split on headings; one chunk
  per section.  Types that are not registered land here too.
* **none** -- short documents become a single chunk.

Chunk ids are deterministic (``{id}-chunk-{i}``, ``{id}-section-{i}``,
``{id}-full``) so a re-ingestion overwrites rather than accumulates.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any, assert_never

import structlog

from workspace_rag.interfaces.topic_segmenter import ITopicSegmenter
from workspace_rag.models.rag import Chunk, ContentSource, Document, RAGMetadata
from workspace_rag.models.transcript import TranscriptTurn
from workspace_rag.services.ingestion.section_parser import (
    has_headings,
    parse_meeting_date,
    parse_meeting_info,
    parse_sections,
)
from workspace_rag.services.ingestion.transcript_parser import parse_transcript
from workspace_rag.utils.errors import LLMError, ParseError

logger = structlog.get_logger(logger_name=__name__)


class ChunkingStrategy(str, Enum):  # noqa: UP042
    AI_TRANSCRIPT = "ai-transcript"
    SECTION_BASED = "section-based"
    NONE = "none"


STRATEGY_BY_DOCUMENT_TYPE: dict[str, ChunkingStrategy] = {
    "transcript": ChunkingStrategy.AI_TRANSCRIPT,
    "summary": ChunkingStrategy.SECTION_BASED,
    "meeting-summary": ChunkingStrategy.SECTION_BASED,
    "meeting-analysis": ChunkingStrategy.SECTION_BASED,
    "document": ChunkingStrategy.SECTION_BASED,
    "text": ChunkingStrategy.SECTION_BASED,
    "context": ChunkingStrategy.NONE,
    "context-summary": ChunkingStrategy.NONE,
    "workspace-context": ChunkingStrategy.NONE,
}


def resolve_strategy(document_type: str | None) -> tuple[ChunkingStrategy, bool]:
    """Return the strategy for *document_type* and whether the type is registered."""
    strategy = STRATEGY_BY_DOCUMENT_TYPE.get(document_type or "")
    if strategy is None:
        return ChunkingStrategy.SECTION_BASED, False
    return strategy, True


def file_hash(document_id: str) -> str:
    return hashlib.sha256(document_id.encode("utf-8")).hexdigest()


def format_turn(turn: TranscriptTurn) -> str:
    return f"[{turn.timecode:g}s] {turn.speaker}: {turn.text}"


def _string_list(value: Any) -> list[str] | None:
    if not value:
        return None
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",")]
    else:
        items = [str(v).strip() for v in value]
    return [v for v in items if v] or None


class ChunkingEngine:
    """Turns a :class:`Document` into the chunks that will be indexed.

    Parameters
    ----------
    segmenter:
        Groups transcript turns into topic segments.
    """

    def __init__(self, segmenter: ITopicSegmenter) -> None:
        self._segmenter = segmenter

    async def chunk(self, document: Document) -> list[Chunk]:
        """Chunk *document* with the strategy its type resolves to.

        Malformed transcripts and failed segmentation produce an empty list
        instead of raising; the caller skips indexing.
        """
        strategy, registered = resolve_strategy(document.document_type)
        if not registered:
            logger.info(
                "unknown_document_type_fallback",
                document_id=document.id,
                document_type=document.document_type,
            )

        if strategy is ChunkingStrategy.AI_TRANSCRIPT:
            chunks = await self._chunk_transcript(document)
        elif strategy is ChunkingStrategy.SECTION_BASED:
            chunks = self._chunk_sections(document, "artifact" if registered else "unknown")
        elif strategy is ChunkingStrategy.NONE:
            chunks = self._chunk_whole(document)
        else:
            assert_never(strategy)

        logger.debug(
            "document_chunked",
            document_id=document.id,
            strategy=strategy.value,
            chunks=len(chunks),
        )
        return chunks

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _chunk_transcript(self, document: Document) -> list[Chunk]:
        topics = _string_list(document.metadata.get("topics")) or []
        try:
            turns = parse_transcript(document.content)
            segments = await self._segmenter.segment(turns, topics)
        except (ParseError, LLMError) as exc:
            logger.warning(
                "transcript_chunking_failed",
                document_id=document.id,
                error=str(exc),
            )
            return []

        extras = self._document_extras(document)
        total = len(segments)
        chunks: list[Chunk] = []
        for i, segment in enumerate(segments):
            seg_turns = turns[segment.start_idx : segment.end_idx + 1]
            metadata = self._metadata(
                document,
                chunk_index=i,
                total_chunks=total,
                content_source="transcript",
                topic=segment.topic,
                speakers=list(dict.fromkeys(t.speaker for t in seg_turns)),
                start_time=seg_turns[0].timecode,
                end_time=seg_turns[-1].timecode,
                **extras,
            )
            chunks.append(
                Chunk(
                    id=f"{document.id}-chunk-{i}",
                    content="\n".join(format_turn(t) for t in seg_turns),
                    metadata=metadata,
                )
            )
        return chunks

    def _chunk_sections(self, document: Document, content_source: ContentSource) -> list[Chunk]:
        sections = parse_sections(document.content)
        if not sections:
            return []

        titled = has_headings(document.content)
        extras = self._document_extras(document)
        if extras.get("meeting_date") is None or extras.get("participants") is None:
            info = parse_meeting_info(document.content)
            if extras.get("meeting_date") is None:
                extras["meeting_date"] = parse_meeting_date(info.date)
            if extras.get("participants") is None:
                extras["participants"] = info.participants

        total = len(sections)
        return [
            Chunk(
                id=f"{document.id}-section-{i}",
                content=section,
                metadata=self._metadata(
                    document,
                    chunk_index=i,
                    total_chunks=total,
                    content_source=content_source,
                    section_title=f"Section {i + 1}" if titled else None,
                    **extras,
                ),
            )
            for i, section in enumerate(sections)
        ]

    def _chunk_whole(self, document: Document) -> list[Chunk]:
        content = document.content.strip()
        if not content:
            return []
        metadata = self._metadata(
            document,
            chunk_index=0,
            total_chunks=1,
            content_source="artifact",
            **self._document_extras(document),
        )
        return [Chunk(id=f"{document.id}-full", content=content, metadata=metadata)]

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @staticmethod
    def _document_extras(document: Document) -> dict[str, Any]:
        hints = document.metadata
        return {
            "meeting_date": parse_meeting_date(hints.get("meetingDate")),
            "participants": _string_list(hints.get("participants")),
            "source_transcript_ids": _string_list(
                hints.get("sourceDocumentIds") or hints.get("sourceTranscriptIds")
            ),
        }

    @staticmethod
    def _metadata(
        document: Document,
        *,
        chunk_index: int,
        total_chunks: int,
        content_source: ContentSource,
        **optional: Any,
    ) -> RAGMetadata:
        return RAGMetadata(
            document_id=document.id,
            document_type=document.document_type or "unknown",
            user_id=document.created_by_user_id,
            title=document.title,
            kind=document.kind,
            created_at=document.created_at,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            file_hash=file_hash(document.id),
            content_source=content_source,
            **optional,
        )
