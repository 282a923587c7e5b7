"""
Mood Entry Schemas
==================
One mood entry per (date, time segment). A day has three segments and the
user rates each on a 1-10 scale with an optional free-text note.

Key design decisions:
- rating is a float because the slider is continuous; the UI shows one
  decimal place.
- timestamp records when the entry was FIRST logged and survives edits,
  so "logged on time" can be judged later. last_modified moves on every save.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Time segments
# ---------------------------------------------------------------------------

class TimeSegment(IntEnum):
    MORNING = 0
    MIDDAY = 1
    EVENING = 2

    @property
    def label(self) -> str:
        return SEGMENT_NAMES[self.value]


SEGMENT_NAMES: tuple[str, ...] = ("Morning", "Midday", "Evening")

MIN_RATING = 1.0
MAX_RATING = 10.0
NEUTRAL_RATING = 5.0


# ---------------------------------------------------------------------------
# Stored record
# ---------------------------------------------------------------------------

class MoodEntry(BaseModel):
    """A single segment's mood, as persisted under ``mood_{date}_{segment}``."""

    date: date
    segment: int = Field(..., ge=0, le=2)
    rating: float = Field(..., ge=MIN_RATING, le=MAX_RATING)
    note: str = ""
    timestamp: Optional[datetime] = Field(
        default=None,
        description="When the entry was first logged. Preserved across edits.",
    )
    last_modified: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Request / response
# ---------------------------------------------------------------------------

class MoodSaveRequest(BaseModel):
    """Payload the client sends when the slider is released or a note changes."""

    rating: float = Field(..., ge=MIN_RATING, le=MAX_RATING)
    note: str = Field(default="", max_length=2000)


class SegmentState(BaseModel):
    segment: int
    name: str
    accessible: bool
    rating: float = NEUTRAL_RATING
    note: str = ""
    logged: bool = False


class DayMoodResponse(BaseModel):
    """All three segments for one day plus the segment the client should open on."""

    date: date
    current_segment: int
    segments: list[SegmentState]
