"""
Tests for MoodDataService
=========================
Covers:
- Storage keys
- save/load round trip, first-logged timestamp preserved across edits
- Validation: rating 1-10, segment 0-2
- Failed writes surface as False
- Malformed stored documents are ignored
- Day loading, daily averages, ranges
- "Logged on time" window: mood day plus a 6 hour grace period

Run: pytest backend/tests/test_mood_data.py -v
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from moodflow.services.mood_data import MoodDataService, iter_days

DAY = date(2026, 3, 1)


@pytest.fixture
def service(store) -> MoodDataService:
    return MoodDataService(store)


class TestKeys:

    def test_key_format(self):
        assert MoodDataService.key_for(DAY, 2) == "mood_2026-03-01_2"

    def test_iter_days_inclusive(self):
        assert list(iter_days(DAY, DAY + timedelta(days=2))) == [
            DAY,
            DAY + timedelta(days=1),
            DAY + timedelta(days=2),
        ]

    def test_iter_days_empty_when_reversed(self):
        assert list(iter_days(DAY, DAY - timedelta(days=1))) == []


class TestSaveAndLoad:

    def test_round_trip(self, service):
        now = datetime(2026, 3, 1, 8, 30)
        assert service.save_mood(DAY, 0, 7.5, "slept well", now=now) is True

        entry = service.load_mood(DAY, 0)
        assert entry.rating == 7.5
        assert entry.note == "slept well"
        assert entry.timestamp == now
        assert entry.last_modified == now

    def test_edit_keeps_first_timestamp(self, service):
        first = datetime(2026, 3, 1, 8, 30)
        later = datetime(2026, 3, 1, 10, 0)
        service.save_mood(DAY, 0, 6.0, now=first)
        service.save_mood(DAY, 0, 8.0, "better now", now=later)

        entry = service.load_mood(DAY, 0)
        assert entry.rating == 8.0
        assert entry.timestamp == first
        assert entry.last_modified == later

    def test_missing_entry_is_none(self, service):
        assert service.load_mood(DAY, 1) is None

    @pytest.mark.parametrize("rating", [0.5, 10.5])
    def test_rating_out_of_range_rejected(self, service, rating):
        with pytest.raises(ValueError):
            service.save_mood(DAY, 0, rating)

    @pytest.mark.parametrize("segment", [-1, 3])
    def test_segment_out_of_range_rejected(self, service, segment):
        with pytest.raises(ValueError):
            service.save_mood(DAY, segment, 5.0)

    def test_failed_write_returns_false(self, service, store):
        store.fail_writes = True
        assert service.save_mood(DAY, 0, 5.0) is False

    def test_malformed_document_ignored(self, service, store):
        store.data["mood_2026-03-01_0"] = {"date": "2026-03-01", "segment": 0, "rating": 42}
        assert service.load_mood(DAY, 0) is None


class TestDays:

    def test_load_day_and_average(self, service):
        service.save_mood(DAY, 0, 4.0)
        service.save_mood(DAY, 2, 8.0)

        day = service.load_day(DAY)
        assert sorted(day) == [0, 2]
        assert service.daily_average(DAY) == 6.0

    def test_average_of_empty_day_is_none(self, service):
        assert service.daily_average(DAY) is None

    def test_range_skips_empty_days(self, service):
        service.save_mood(DAY, 0, 5.0)
        service.save_mood(DAY + timedelta(days=2), 1, 9.0)

        days = service.load_range(DAY, DAY + timedelta(days=3))
        assert list(days) == [DAY, DAY + timedelta(days=2)]
        assert service.daily_averages(DAY, DAY + timedelta(days=3)) == {
            DAY: 5.0,
            DAY + timedelta(days=2): 9.0,
        }


class TestLoggedOnTime:

    def test_same_day_is_on_time(self, service):
        service.save_mood(DAY, 2, 6.0, now=datetime(2026, 3, 1, 21, 0))
        assert service.was_mood_logged_on_time(DAY, 2) is True

    def test_within_grace_period_is_on_time(self, service):
        service.save_mood(DAY, 2, 6.0, now=datetime(2026, 3, 2, 5, 59))
        assert service.was_mood_logged_on_time(DAY, 2) is True

    def test_after_grace_period_is_late(self, service):
        service.save_mood(DAY, 2, 6.0, now=datetime(2026, 3, 2, 6, 0))
        assert service.was_mood_logged_on_time(DAY, 2) is False

    def test_exactly_midnight_start_is_not_on_time(self, service):
        service.save_mood(DAY, 0, 6.0, now=datetime(2026, 3, 1, 0, 0))
        assert service.was_mood_logged_on_time(DAY, 0) is False

    def test_missing_entry_is_not_on_time(self, service):
        assert service.was_mood_logged_on_time(DAY, 1) is False
