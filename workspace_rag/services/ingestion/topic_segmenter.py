"""Topic segmentation of transcript turns.

:class:`LLMTopicSegmenter` sends the whole numbered conversation to an LLM
and asks for contiguous ``{topic, startIdx, endIdx}`` segments, then repairs
boundary mistakes so the result always covers every turn exactly once.

:class:`HeuristicTopicSegmenter` needs no model: it cuts fixed-size windows,
nudged back to the nearest speaker change or long pause, and assigns the
hinted topics round-robin.  It is wired in when no LLM is configured.
"""

from __future__ import annotations

import math

import structlog
from pydantic import BaseModel, ConfigDict, Field

from workspace_rag.interfaces.llm_provider import ILLMProvider
from workspace_rag.interfaces.topic_segmenter import ITopicSegmenter
from workspace_rag.models.transcript import GENERAL_DISCUSSION, TopicSegment, TranscriptTurn
from workspace_rag.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_SYSTEM_PROMPT = (
    "You segment meeting transcripts into topically coherent, contiguous chunks. "
    "Respond with a single JSON object and nothing else."
)

_MIN_WINDOW = 5
_MAX_WINDOW = 30
_PAUSE_SECONDS = 30


class _LLMSegment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    start_idx: int = Field(alias="startIdx", ge=0)
    end_idx: int = Field(alias="endIdx", ge=0)


class _LLMSegmentation(BaseModel):
    chunks: list[_LLMSegment]


def build_segmentation_prompt(turns: list[TranscriptTurn], topics: list[str]) -> str:
    """Render the numbered conversation and the segmentation rules."""
    last = len(turns) - 1
    conversation = "\n".join(f"[{i}] {t.speaker}: {t.text}" for i, t in enumerate(turns))
    topic_lines = "\n".join(f"- {topic}" for topic in topics)
    return f"""Analyze this conversation and segment it into topically coherent chunks.

AVAILABLE TOPICS:
{topic_lines}
- {GENERAL_DISCUSSION} (use when no specific topic fits)

RULES:
1. Every chunk has startIdx and endIdx (both inclusive).
2. Chunks are contiguous: chunk[i].endIdx + 1 == chunk[i+1].startIdx.
3. The first chunk starts at 0 and the last chunk ends at {last}.
4. Every index from 0 to {last} belongs to exactly one chunk.
5. A topic may appear in several chunks if the conversation returns to it.
6. Prefer natural topic boundaries over equal sizes.

EXAMPLE:
[0] Alice: Let's discuss the budget
[1] Bob: Marketing went over by 15%
[2] Alice: Now about the new feature
[3] Bob: Authentication is ready
[4] Alice: Going back to budget, what about Q3?
[5] Bob: Q3 looks better

{{"chunks": [{{"topic": "Budget", "startIdx": 0, "endIdx": 1}}, {{"topic": "Product Development", "startIdx": 2, "endIdx": 3}}, {{"topic": "Budget", "startIdx": 4, "endIdx": 5}}]}}

CONVERSATION TO SEGMENT:
{conversation}

Look for explicit transitions ("let's discuss", "moving on", "regarding"), questions that change the subject, and returns to earlier topics.

Return ONLY JSON of the form {{"chunks": [{{"topic": "...", "startIdx": N, "endIdx": M}}]}}."""


def _extract_json(raw: str) -> str:
    """Cut the outermost JSON object out of a reply that may carry code fences."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise LLMError(message="Segmentation reply contains no JSON object")
    return raw[start : end + 1]


def repair_segments(segments: list[TopicSegment], total: int) -> list[TopicSegment]:
    """Force *segments* to tile ``0..total-1`` contiguously.

    The first segment is pulled back to 0, each later segment starts right
    after its predecessor, and the last one is stretched to ``total - 1``.
    Segments swallowed by an earlier one's end are dropped.  An empty
    answer becomes a single general-discussion segment.
    """
    if total <= 0:
        return []

    repaired: list[TopicSegment] = []
    next_start = 0
    for segment in segments:
        end = min(segment.end_idx, total - 1)
        if end < next_start:
            logger.debug("segment_dropped", topic=segment.topic, start=segment.start_idx, end=segment.end_idx)
            continue
        if segment.start_idx != next_start:
            logger.debug("segment_start_fixed", expected=next_start, got=segment.start_idx)
        repaired.append(TopicSegment(topic=segment.topic, start_idx=next_start, end_idx=end))
        next_start = end + 1

    if not repaired:
        return [TopicSegment(topic=GENERAL_DISCUSSION, start_idx=0, end_idx=total - 1)]

    last = repaired[-1]
    if last.end_idx != total - 1:
        repaired[-1] = last.model_copy(update={"end_idx": total - 1})
    return repaired


class LLMTopicSegmenter(ITopicSegmenter):
    """Segments transcripts by asking an LLM for topic boundaries."""

    def __init__(self, llm: ILLMProvider, max_tokens: int = 4000) -> None:
        self._llm = llm
        self._max_tokens = max_tokens

    async def segment(self, turns: list[TranscriptTurn], topics: list[str]) -> list[TopicSegment]:
        if not turns:
            return []

        raw = await self._llm.complete(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=build_segmentation_prompt(turns, topics),
            temperature=0.0,
            max_tokens=self._max_tokens,
        )
        try:
            parsed = _LLMSegmentation.model_validate_json(_extract_json(raw))
        except ValueError as exc:
            raise LLMError(
                message=f"Unusable segmentation reply: {exc}",
                provider_name=self._llm.get_provider_name(),
            ) from exc

        segments = repair_segments(
            [TopicSegment(topic=s.topic, start_idx=s.start_idx, end_idx=s.end_idx) for s in parsed.chunks],
            len(turns),
        )
        logger.info(
            "transcript_segmented",
            provider=self._llm.get_provider_name(),
            turns=len(turns),
            segments=len(segments),
        )
        return segments


class HeuristicTopicSegmenter(ITopicSegmenter):
    """Fixed-size windows snapped to speaker changes or long pauses."""

    async def segment(self, turns: list[TranscriptTurn], topics: list[str]) -> list[TopicSegment]:
        if not turns:
            return []

        names = topics or [GENERAL_DISCUSSION]
        total = len(turns)
        window = min(_MAX_WINDOW, max(_MIN_WINDOW, math.ceil(total / len(names))))

        segments: list[TopicSegment] = []
        start = 0
        while start < total:
            end = min(start + window - 1, total - 1)
            if end < total - 1:
                for i in range(end, start + 3, -1):
                    speaker_changed = turns[i].speaker != turns[i - 1].speaker
                    paused = turns[i].timecode - turns[i - 1].timecode > _PAUSE_SECONDS
                    if speaker_changed or paused:
                        end = i - 1
                        break
            segments.append(
                TopicSegment(topic=names[len(segments) % len(names)], start_idx=start, end_idx=end)
            )
            start = end + 1
        return segments
