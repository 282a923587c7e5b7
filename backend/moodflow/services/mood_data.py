"""
Mood Data Service
=================
Load and save mood entries by (date, segment).

Storage keys look like ``mood_2026-03-01_2``. Times are device-local and
naive: segments are defined by the user's wall clock, not UTC.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from moodflow.db.store import KeyValueStore, get_store
from moodflow.models.mood import MAX_RATING, MIN_RATING, SEGMENT_NAMES, MoodEntry

logger = logging.getLogger(__name__)

# Entries logged up to this long after the mood's day ends still count as on time
ON_TIME_GRACE = timedelta(hours=6)


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def iter_days(start: date, end: date):
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class MoodDataService:
    """Reads and writes ``MoodEntry`` documents in the key-value store."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store or get_store()

    @staticmethod
    def key_for(day: date, segment: int) -> str:
        return f"mood_{day.isoformat()}_{segment}"

    def load_mood(self, day: date, segment: int) -> Optional[MoodEntry]:
        raw = self._store.get(self.key_for(day, segment))
        if not raw:
            return None
        try:
            return MoodEntry.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed mood entry %s", self.key_for(day, segment))
            return None

    def save_mood(
        self,
        day: date,
        segment: int,
        rating: float,
        note: str = "",
        now: datetime | None = None,
    ) -> bool:
        """Persist a rating and note. The first-logged timestamp is kept on edits."""
        if not 0 <= segment < len(SEGMENT_NAMES):
            raise ValueError(f"segment must be 0-{len(SEGMENT_NAMES) - 1}, got {segment}")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"rating must be {MIN_RATING:g}-{MAX_RATING:g}, got {rating}")

        now = now or datetime.now()
        existing = self.load_mood(day, segment)
        first_logged = existing.timestamp if existing and existing.timestamp else now

        entry = MoodEntry(
            date=day,
            segment=segment,
            rating=rating,
            note=note,
            timestamp=first_logged,
            last_modified=now,
        )
        saved = self._store.set(self.key_for(day, segment), entry.model_dump(mode="json"))
        if saved:
            logger.debug("Saved mood %s: %.1f", self.key_for(day, segment), rating)
        else:
            logger.warning("Mood %s was not persisted", self.key_for(day, segment))
        return saved

    def load_day(self, day: date) -> dict[int, MoodEntry]:
        entries: dict[int, MoodEntry] = {}
        for segment in range(len(SEGMENT_NAMES)):
            entry = self.load_mood(day, segment)
            if entry is not None:
                entries[segment] = entry
        return entries

    def daily_average(self, day: date) -> Optional[float]:
        entries = self.load_day(day)
        if not entries:
            return None
        return sum(e.rating for e in entries.values()) / len(entries)

    def load_range(self, start: date, end: date) -> dict[date, dict[int, MoodEntry]]:
        """Entries for every day in [start, end] that has at least one segment logged."""
        days: dict[date, dict[int, MoodEntry]] = {}
        for day in iter_days(start, end):
            entries = self.load_day(day)
            if entries:
                days[day] = entries
        return days

    def daily_averages(self, start: date, end: date) -> dict[date, float]:
        return {
            day: sum(e.rating for e in entries.values()) / len(entries)
            for day, entries in self.load_range(start, end).items()
        }

    def was_mood_logged_on_time(self, day: date, segment: int) -> bool:
        """True if the entry was first logged on its own day or within the grace period."""
        entry = self.load_mood(day, segment)
        if entry is None or entry.timestamp is None:
            return False

        logged_at = _local_naive(entry.timestamp)
        day_start = datetime.combine(day, datetime.min.time())
        grace_end = day_start + timedelta(days=1) + ON_TIME_GRACE
        return day_start < logged_at < grace_end


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_service: MoodDataService | None = None


def get_mood_data_service() -> MoodDataService:
    global _default_service
    if _default_service is None:
        _default_service = MoodDataService()
    return _default_service
