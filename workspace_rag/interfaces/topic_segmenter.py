"""Abstract base class for transcript topic segmenters.

A segmenter groups contiguous speaker turns into topic segments.  Segments
must cover every turn exactly once, in order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from workspace_rag.models.transcript import TopicSegment, TranscriptTurn


# Concrete implementations: LLMTopicSegmenter, HeuristicTopicSegmenter
# Located in: workspace_rag/services/ingestion/topic_segmenter.py
class ITopicSegmenter(ABC):
    """Contract for turning speaker turns into contiguous topic segments."""

    @abstractmethod
    async def segment(self, turns: list[TranscriptTurn], topics: list[str]) -> list[TopicSegment]:
        """Segment *turns*.

        Parameters
        ----------
        turns:
            Parsed transcript turns, in spoken order.
        topics:
            Optional hint list of expected topics; may be empty.

        Returns
        -------
        list[TopicSegment]
            Contiguous segments starting at 0 and ending at ``len(turns) - 1``.
            Empty when *turns* is empty.

        Raises
        ------
        workspace_rag.utils.errors.LLMError
            If an LLM-backed segmenter cannot get a usable answer.
        """
