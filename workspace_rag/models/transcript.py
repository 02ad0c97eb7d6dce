"""Transcript models: parsed speaker turns and the topic segments over them."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

GENERAL_DISCUSSION = "General Discussion"


class TranscriptTurn(BaseModel):
    """One speaker turn; ``timecode`` is seconds from the start."""

    model_config = ConfigDict(frozen=True)

    timecode: float
    speaker: str
    text: str


class TopicSegment(BaseModel):
    """Turns ``start_idx..end_idx`` (inclusive) discussing ``topic``."""

    model_config = ConfigDict(frozen=True)

    topic: str
    start_idx: int = Field(ge=0)
    end_idx: int = Field(ge=0)
