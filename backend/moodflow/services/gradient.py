"""
Mood Gradient Service
=====================
Background gradient for the mood log screen, driven by today's average mood.

The average covers every segment that is currently open. Open segments with
no stored rating count as a neutral 5, and the segment being edited uses the
live slider value instead of its stored one. The average is mapped onto
t = (avg - 1) / 9 and then onto a colour ramp:

    t in [0, 0.5]:  black -> orange   (start colour), orange (end colour)
    t in (0.5, 1]:  orange -> yellow  (start colour), yellow -> green (end)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from moodflow.models.mood import NEUTRAL_RATING, SEGMENT_NAMES
from moodflow.services.mood_data import MoodDataService, get_mood_data_service
from moodflow.services.segments import SegmentService, can_access_segment, get_segment_service

logger = logging.getLogger(__name__)


def _round(value: float) -> int:
    # half away from zero; channels are never negative
    return int(value + 0.5)


@dataclass(frozen=True)
class Color:
    a: int
    r: int
    g: int
    b: int

    @classmethod
    def from_argb(cls, value: int) -> "Color":
        return cls(
            a=(value >> 24) & 0xFF,
            r=(value >> 16) & 0xFF,
            g=(value >> 8) & 0xFF,
            b=value & 0xFF,
        )

    @property
    def argb(self) -> int:
        return (self.a << 24) | (self.r << 16) | (self.g << 8) | self.b

    @property
    def hex(self) -> str:
        return f"#{self.argb:08X}"

    def lerp(self, other: "Color", t: float) -> "Color":
        return Color(
            a=_round(self.a + (other.a - self.a) * t),
            r=_round(self.r + (other.r - self.r) * t),
            g=_round(self.g + (other.g - self.g) * t),
            b=_round(self.b + (other.b - self.b) * t),
        )


@dataclass(frozen=True)
class Alignment:
    x: float
    y: float

    def lerp(self, other: "Alignment", t: float) -> "Alignment":
        return Alignment(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)


TOP_LEFT = Alignment(-1.0, -1.0)
BOTTOM_RIGHT = Alignment(1.0, 1.0)
CENTER_LEFT = Alignment(-1.0, 0.0)
CENTER_RIGHT = Alignment(1.0, 0.0)


@dataclass(frozen=True)
class LinearGradient:
    colors: tuple[Color, ...]
    begin: Alignment = CENTER_LEFT
    end: Alignment = CENTER_RIGHT

    def to_dict(self) -> dict:
        return {
            "colors": [c.hex for c in self.colors],
            "begin": [self.begin.x, self.begin.y],
            "end": [self.end.x, self.end.y],
        }


BLACK = Color.from_argb(0xFF000000)
ORANGE = Color.from_argb(0xFFF57C00)  # orange 700
YELLOW = Color.from_argb(0xFFFDD835)  # yellow 600
GREEN = Color.from_argb(0xFF43A047)   # green 600


def gradient_from_normalized_t(t: float) -> LinearGradient:
    t = min(max(t, 0.0), 1.0)
    if t <= 0.5:
        local_t = t / 0.5
        return LinearGradient(
            colors=(BLACK.lerp(ORANGE, local_t), ORANGE),
            begin=TOP_LEFT,
            end=BOTTOM_RIGHT,
        )
    local_t = (t - 0.5) / 0.5
    return LinearGradient(
        colors=(ORANGE.lerp(YELLOW, local_t), YELLOW.lerp(GREEN, local_t)),
        begin=TOP_LEFT,
        end=BOTTOM_RIGHT,
    )


def gradient_for_average(average: float) -> LinearGradient:
    return gradient_from_normalized_t((average - 1) / 9)


def fallback_gradient(is_dark_mode: bool) -> LinearGradient:
    if is_dark_mode:
        return LinearGradient(colors=(Color.from_argb(0xFF121212), Color.from_argb(0xFF1E1E1E)))
    return LinearGradient(colors=(Color.from_argb(0xFF2196F3), Color.from_argb(0xFF90CAF9)))


def lerp_gradient(begin: LinearGradient, end: LinearGradient, t: float) -> LinearGradient:
    """Interpolate two gradients with the same number of colours."""
    if len(begin.colors) != len(end.colors):
        raise ValueError("gradients must have the same number of colours")
    return LinearGradient(
        colors=tuple(a.lerp(b, t) for a, b in zip(begin.colors, end.colors)),
        begin=begin.begin.lerp(end.begin, t),
        end=begin.end.lerp(end.end, t),
    )


def average_open_segments(
    stored: dict[int, Optional[float]],
    open_segments: list[int],
    current_segment: int,
    current_mood: float,
) -> float:
    """Average of the open segments, neutral for missing, live value for the current one."""
    moods = []
    for segment in open_segments:
        if segment == current_segment:
            moods.append(current_mood)
        else:
            value = stored.get(segment)
            moods.append(value if value is not None else NEUTRAL_RATING)
    if not moods:
        return current_mood
    return sum(moods) / len(moods)


class MoodGradientService:
    """Computes today's background gradient from stored moods and segment gating."""

    def __init__(
        self,
        mood_data: MoodDataService | None = None,
        segments: SegmentService | None = None,
    ) -> None:
        self._mood_data = mood_data or get_mood_data_service()
        self._segments = segments or get_segment_service()

    def compute_gradient_for_mood(
        self,
        current_mood: float,
        current_segment: int,
        now: datetime | None = None,
    ) -> LinearGradient:
        now = now or datetime.now()
        settings = self._segments.load_settings()
        today: date = now.date()

        open_segments = [
            i for i in range(len(SEGMENT_NAMES)) if can_access_segment(i, now, settings)
        ]
        stored: dict[int, Optional[float]] = {}
        for segment in open_segments:
            entry = self._mood_data.load_mood(today, segment)
            stored[segment] = entry.rating if entry else None

        average = average_open_segments(stored, open_segments, current_segment, current_mood)
        logger.debug("Gradient average %.2f over segments %s", average, open_segments)
        return gradient_for_average(average)
