"""Unit tests for ChunkingEngine strategy dispatch and chunk metadata."""

from __future__ import annotations

import hashlib
from unittest.mock import AsyncMock, MagicMock

import pytest

from workspace_rag.interfaces.topic_segmenter import ITopicSegmenter
from workspace_rag.models.transcript import TopicSegment
from workspace_rag.services.ingestion.chunker import (
    ChunkingEngine,
    ChunkingStrategy,
    resolve_strategy,
)
from workspace_rag.services.ingestion.topic_segmenter import HeuristicTopicSegmenter
from workspace_rag.utils.errors import LLMError


def _segmenter(segments: list[TopicSegment] | None = None, error: Exception | None = None) -> MagicMock:
    segmenter = MagicMock(spec=ITopicSegmenter)
    segmenter.segment = AsyncMock(return_value=segments or [], side_effect=error)
    return segmenter


def _assert_chunk_indices(chunks) -> None:
    total = len(chunks)
    assert [c.metadata.chunk_index for c in chunks] == list(range(total))
    assert all(c.metadata.total_chunks == total for c in chunks)


class TestResolveStrategy:
    @pytest.mark.parametrize(
        ("document_type", "strategy"),
        [
            ("transcript", ChunkingStrategy.AI_TRANSCRIPT),
            ("summary", ChunkingStrategy.SECTION_BASED),
            ("meeting-summary", ChunkingStrategy.SECTION_BASED),
            ("context", ChunkingStrategy.NONE),
            ("context-summary", ChunkingStrategy.NONE),
            ("workspace-context", ChunkingStrategy.NONE),
        ],
    )
    def test_registered(self, document_type: str, strategy: ChunkingStrategy) -> None:
        assert resolve_strategy(document_type) == (strategy, True)

    def test_unknown_falls_back_to_sections(self) -> None:
        assert resolve_strategy("spreadsheet") == (ChunkingStrategy.SECTION_BASED, False)
        assert resolve_strategy(None) == (ChunkingStrategy.SECTION_BASED, False)


class TestSectionStrategy:
    @pytest.mark.asyncio
    async def test_weekly_sync_sections(self, make_document, weekly_sync_summary) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        chunks = await engine.chunk(make_document(content=weekly_sync_summary))

        assert [c.id for c in chunks] == ["doc-1-section-0", "doc-1-section-1", "doc-1-section-2"]
        assert [c.metadata.section_title for c in chunks] == ["Section 1", "Section 2", "Section 3"]
        _assert_chunk_indices(chunks)
        meta = chunks[0].metadata
        assert meta.document_id == "doc-1"
        assert meta.document_type == "summary"
        assert meta.user_id == "user-1"
        assert meta.title == "Weekly Sync"
        assert meta.content_source == "artifact"
        assert meta.file_hash == hashlib.sha256(b"doc-1").hexdigest()

    @pytest.mark.asyncio
    async def test_meeting_info_enriched_from_content(self, make_document, weekly_sync_summary) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        chunks = await engine.chunk(make_document(content=weekly_sync_summary))

        assert all(c.metadata.meeting_date == "2024-09-11T00:00:00" for c in chunks)
        assert all(c.metadata.participants == ["Alice", "Bob"] for c in chunks)

    @pytest.mark.asyncio
    async def test_descriptor_hints_win_over_content(self, make_document, weekly_sync_summary) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        document = make_document(
            content=weekly_sync_summary,
            metadata={
                "meetingDate": "2024-10-01",
                "participants": ["Carol"],
                "sourceDocumentIds": ["t-1", "t-2"],
            },
        )

        chunks = await engine.chunk(document)

        meta = chunks[0].metadata
        assert meta.meeting_date == "2024-10-01T00:00:00"
        assert meta.participants == ["Carol"]
        assert meta.source_transcript_ids == ["t-1", "t-2"]

    @pytest.mark.asyncio
    async def test_no_headings_single_untitled_section(self, make_document) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        chunks = await engine.chunk(make_document(content="Plain notes without any heading."))

        assert len(chunks) == 1
        assert chunks[0].id == "doc-1-section-0"
        assert chunks[0].metadata.section_title is None
        _assert_chunk_indices(chunks)

    @pytest.mark.asyncio
    async def test_unknown_type_marked_unknown_source(self, make_document) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        chunks = await engine.chunk(make_document(content="# A\none\n# B\ntwo", document_type="spreadsheet"))

        assert len(chunks) == 2
        assert all(c.metadata.content_source == "unknown" for c in chunks)
        assert all(c.metadata.document_type == "spreadsheet" for c in chunks)


class TestNoneStrategy:
    @pytest.mark.asyncio
    async def test_whole_document_one_chunk(self, make_document) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        content = "# Context\nThe workspace is about onboarding.\n## More\nDetails."

        chunks = await engine.chunk(make_document(content=content, document_type="context"))

        assert len(chunks) == 1
        assert chunks[0].id == "doc-1-full"
        assert chunks[0].content == content
        assert chunks[0].metadata.total_chunks == 1
        assert chunks[0].metadata.section_title is None

    @pytest.mark.asyncio
    async def test_blank_document(self, make_document) -> None:
        engine = ChunkingEngine(segmenter=_segmenter())
        assert await engine.chunk(make_document(content="   ", document_type="context")) == []


class TestTranscriptStrategy:
    @pytest.mark.asyncio
    async def test_segments_become_chunks(self, make_document, webvtt_transcript) -> None:
        segmenter = _segmenter(
            [
                TopicSegment(topic="Budget", start_idx=0, end_idx=1),
                TopicSegment(topic="Product", start_idx=2, end_idx=3),
            ]
        )
        engine = ChunkingEngine(segmenter=segmenter)
        document = make_document(
            content=webvtt_transcript,
            document_type="transcript",
            metadata={"topics": ["Budget", "Product"]},
        )

        chunks = await engine.chunk(document)

        assert [c.id for c in chunks] == ["doc-1-chunk-0", "doc-1-chunk-1"]
        _assert_chunk_indices(chunks)
        first = chunks[0]
        assert first.content == "[1s] Alice: Let's discuss the budget\n[5s] Bob: Marketing went over by 15%"
        assert first.metadata.topic == "Budget"
        assert first.metadata.speakers == ["Alice", "Bob"]
        assert first.metadata.start_time == 1.0
        assert first.metadata.end_time == 5.0
        assert first.metadata.content_source == "transcript"
        assert chunks[1].metadata.start_time == 10.5
        assert chunks[1].metadata.end_time == 62.0

        turns, topics = segmenter.segment.await_args.args
        assert len(turns) == 4
        assert topics == ["Budget", "Product"]

    @pytest.mark.asyncio
    async def test_speakers_deduplicated_in_order(self, make_document) -> None:
        content = (
            "WEBVTT\n\n"
            "00:00:01.000 --> 00:00:02.000\nBob: one\n\n"
            "00:00:03.000 --> 00:00:04.000\nAlice: two\n\n"
            "00:00:05.000 --> 00:00:06.000\nBob: three\n"
        )
        engine = ChunkingEngine(segmenter=HeuristicTopicSegmenter())

        chunks = await engine.chunk(make_document(content=content, document_type="transcript"))

        assert len(chunks) == 1
        assert chunks[0].metadata.speakers == ["Bob", "Alice"]

    @pytest.mark.asyncio
    async def test_unparseable_transcript_yields_nothing(self, make_document) -> None:
        segmenter = _segmenter()
        engine = ChunkingEngine(segmenter=segmenter)

        chunks = await engine.chunk(make_document(content="no recognisable format", document_type="transcript"))

        assert chunks == []
        segmenter.segment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_segmentation_failure_yields_nothing(self, make_document, webvtt_transcript) -> None:
        engine = ChunkingEngine(segmenter=_segmenter(error=LLMError("timeout", provider_name="anthropic")))

        chunks = await engine.chunk(make_document(content=webvtt_transcript, document_type="transcript"))

        assert chunks == []
