"""Deterministic parsing of meeting transcripts into timestamped speaker turns.

Two export formats are recognised:

* **WebVTT** -- a ``WEBVTT`` header, then blank-line separated cues whose
  timing line contains ``-->`` and whose last line reads ``Speaker: text``.
* **Fathom** -- contains ``VIEW RECORDING``; each turn is a
  ``MM:SS - Speaker (Org)`` line followed by the spoken text on the next
  non-empty line.

Anything else raises :class:`~workspace_rag.utils.errors.ParseError`.
"""

from __future__ import annotations

import re

from workspace_rag.models.transcript import TranscriptTurn
from workspace_rag.utils.errors import ParseError

_FATHOM_TURN_RE = re.compile(r"^(\d+:\d+(?::\d+)?)\s*-\s*([^(]+)(?:\([^)]+\))?")
_TIMESTAMP_LINE_RE = re.compile(r"^\d+:\d+")


def time_to_seconds(value: str) -> float:
    """Convert ``MM:SS`` or ``HH:MM:SS(.mmm)`` to seconds; other shapes give 0."""
    try:
        parts = [float(p) for p in value.strip().split(":")]
    except ValueError:
        return 0.0
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    return 0.0


def parse_transcript(content: str) -> list[TranscriptTurn]:
    """Detect the transcript format and parse it into turns.

    Raises
    ------
    ParseError
        If the format is not recognised or no turns could be extracted.
    """
    content = content.replace("\r\n", "\n")
    if "WEBVTT" in content:
        turns = _parse_webvtt(content)
    elif "VIEW RECORDING" in content:
        turns = _parse_fathom(content)
    else:
        raise ParseError("Unsupported transcript format; expected WebVTT or Fathom")
    if not turns:
        raise ParseError("Transcript contains no speaker turns")
    return turns


def _parse_webvtt(content: str) -> list[TranscriptTurn]:
    turns: list[TranscriptTurn] = []
    for block in content.split("\n\n"):
        if "-->" not in block:
            continue
        lines = [line for line in block.split("\n") if line.strip()]
        timing = next(line for line in lines if "-->" in line)
        speaker, sep, text = lines[-1].partition(":")
        if not sep or "-->" in lines[-1]:
            continue
        turns.append(
            TranscriptTurn(
                timecode=time_to_seconds(timing.split("-->")[0]),
                speaker=speaker.strip(),
                text=text.strip(),
            )
        )
    return turns


def _parse_fathom(content: str) -> list[TranscriptTurn]:
    turns: list[TranscriptTurn] = []
    lines = content.split("\n")
    i = 0
    while i < len(lines):
        match = _FATHOM_TURN_RE.match(lines[i])
        if match:
            j = i + 1
            while j < len(lines) and not lines[j].strip():
                j += 1
            if j < len(lines) and not _TIMESTAMP_LINE_RE.match(lines[j]):
                turns.append(
                    TranscriptTurn(
                        timecode=time_to_seconds(match.group(1)),
                        speaker=match.group(2).strip(),
                        text=lines[j].strip(),
                    )
                )
                i = j
        i += 1
    return turns
