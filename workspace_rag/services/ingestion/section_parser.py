"""Section splitting and meeting-metadata extraction for structured documents.

Summaries and notes are markdown.  They are split on level 1-3 headings;
each heading's text stays as the first line of its section so the chunk
reads the same as the source.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import NamedTuple

import structlog
from dateutil import parser as dateutil_parser

logger = structlog.get_logger(logger_name=__name__)

_HEADING_SPLIT_RE = re.compile(r"^#{1,3}\s+", re.MULTILINE)
_DATE_RE = re.compile(r"\*\*Date:\*\*\s*(.+)")
_PARTICIPANTS_RE = re.compile(r"\*\*Participants?:\*\*\s*(.+)")
_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class MeetingInfo(NamedTuple):
    date: str | None
    participants: list[str] | None


def parse_sections(content: str) -> list[str]:
    """Split *content* on ``#``/``##``/``###`` headings.

    Blank sections are dropped.  Content without headings comes back as a
    single section.
    """
    sections = [part.strip() for part in _HEADING_SPLIT_RE.split(content)]
    return [section for section in sections if section]


def parse_meeting_info(content: str) -> MeetingInfo:
    """Pull ``**Date:**`` and ``**Participants:**`` lines out of a summary."""
    date_match = _DATE_RE.search(content)
    participants_match = _PARTICIPANTS_RE.search(content)
    participants = None
    if participants_match:
        participants = [p.strip() for p in participants_match.group(1).split(",") if p.strip()] or None
    return MeetingInfo(
        date=date_match.group(1).strip() if date_match else None,
        participants=participants,
    )


def parse_meeting_date(value: object, today: datetime | None = None) -> str | None:
    """Normalise a meeting date to ISO-8601.

    Accepts ISO strings, ``datetime`` objects and loose formats such as
    ``"9/11/2024"`` or ``"September 11"``; a missing year defaults to the
    current year.  Unparseable values are logged and dropped.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    text = str(value).strip()
    if _ISO_PREFIX_RE.match(text):
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).isoformat()
        except ValueError:
            pass
    default = (today or datetime.now()).replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    try:
        return dateutil_parser.parse(text, default=default, fuzzy=True).isoformat()
    except (ValueError, OverflowError):
        logger.warning("meeting_date_unparseable", value_length=len(text))
        return None


def has_headings(content: str) -> bool:
    """``True`` if *content* contains at least one level 1-3 heading."""
    return _HEADING_SPLIT_RE.search(content) is not None
