"""
Segment Access Gating
=====================
Decides which time segment of today is writable.

Morning is open from midnight. Midday opens at the user's midday reminder
time and evening at the evening reminder time, both taken from the
notification settings. Past segments stay open for the rest of the day;
future segments are locked.
"""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Mapping, Optional

from pydantic import ValidationError

from moodflow.db.store import KeyValueStore, get_store
from moodflow.models.mood import SEGMENT_NAMES, TimeSegment
from moodflow.models.notification import NotificationSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "notification_settings"


class SegmentLockedError(Exception):
    """Raised when writing to a segment that has not opened yet."""

    def __init__(self, segment: int) -> None:
        self.segment = segment
        name = SEGMENT_NAMES[segment] if 0 <= segment < len(SEGMENT_NAMES) else str(segment)
        super().__init__(f"{name} segment is not available yet")


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


# ---------------------------------------------------------------------------
# Pure gating rules
# ---------------------------------------------------------------------------

def can_access_segment(index: int, now: datetime, settings: NotificationSettings) -> bool:
    current = now.hour * 60 + now.minute

    if index == TimeSegment.MORNING:
        return True
    if index == TimeSegment.MIDDAY:
        return current >= _minutes(settings.midday_time)
    if index == TimeSegment.EVENING:
        return current >= _minutes(settings.evening_time)
    return False


def current_segment_index(now: datetime, settings: NotificationSettings) -> int:
    """The latest segment that is open at ``now``."""
    current = now.hour * 60 + now.minute
    if current >= _minutes(settings.evening_time):
        return TimeSegment.EVENING
    if current >= _minutes(settings.midday_time):
        return TimeSegment.MIDDAY
    return TimeSegment.MORNING


def accessibility(now: datetime, settings: NotificationSettings) -> dict[int, bool]:
    return {i: can_access_segment(i, now, settings) for i in range(len(SEGMENT_NAMES))}


def first_accessible(cache: Mapping[int, bool]) -> int:
    for i in range(len(SEGMENT_NAMES)):
        if cache.get(i):
            return i
    return TimeSegment.MORNING


def last_accessible(cache: Mapping[int, bool]) -> int:
    for i in reversed(range(len(SEGMENT_NAMES))):
        if cache.get(i):
            return i
    return TimeSegment.MORNING


def previous_accessible(current: int, cache: Mapping[int, bool]) -> Optional[int]:
    for i in range(current - 1, -1, -1):
        if cache.get(i):
            return i
    return None


def next_accessible(current: int, cache: Mapping[int, bool]) -> Optional[int]:
    for i in range(current + 1, len(SEGMENT_NAMES)):
        if cache.get(i):
            return i
    return None


# ---------------------------------------------------------------------------
# Settings lookup
# ---------------------------------------------------------------------------

class SegmentService:
    """Loads notification settings and answers gating questions against them."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store or get_store()

    def load_settings(self) -> NotificationSettings:
        raw = self._store.get(SETTINGS_KEY)
        if not raw:
            return NotificationSettings()
        try:
            return NotificationSettings.model_validate(raw)
        except ValidationError:
            logger.warning("Stored notification settings are malformed, using defaults")
            return NotificationSettings()

    def save_settings(self, settings: NotificationSettings) -> bool:
        return self._store.set(SETTINGS_KEY, settings.model_dump(mode="json"))

    def can_access(self, index: int, now: datetime | None = None) -> bool:
        return can_access_segment(index, now or datetime.now(), self.load_settings())

    def current_segment(self, now: datetime | None = None) -> int:
        return current_segment_index(now or datetime.now(), self.load_settings())

    def ensure_writable(self, index: int, now: datetime | None = None) -> None:
        if not self.can_access(index, now):
            raise SegmentLockedError(index)


_default_service: SegmentService | None = None


def get_segment_service() -> SegmentService:
    global _default_service
    if _default_service is None:
        _default_service = SegmentService()
    return _default_service
