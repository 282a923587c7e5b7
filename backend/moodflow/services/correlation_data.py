"""
Correlation Data Service
========================
Per-day contextual factors: persistence plus the small amount of display
logic the correlation screen needs (sleep duration, labels, colours).
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from moodflow.db.store import KeyValueStore, get_store
from moodflow.models.correlation import (
    ActivityLevel,
    CorrelationData,
    SocialActivity,
    WeatherCondition,
    WeatherReading,
)

logger = logging.getLogger(__name__)

KEY_PREFIX = "correlation_"


# ---------------------------------------------------------------------------
# Sleep arithmetic
# ---------------------------------------------------------------------------

def sleep_duration(bedtime: Optional[datetime], wake_time: Optional[datetime]) -> timedelta:
    """Time asleep, mod 24h. Negative spans are treated as crossing midnight."""
    if bedtime is None or wake_time is None:
        return timedelta(0)
    return (wake_time - bedtime) % timedelta(days=1)


def format_duration(duration: timedelta) -> str:
    total_minutes = int(duration.total_seconds() // 60)
    return f"{total_minutes // 60}h {total_minutes % 60}m"


# ---------------------------------------------------------------------------
# Labels and colours
# ---------------------------------------------------------------------------

WEATHER_NAMES = {
    WeatherCondition.SUNNY: "Sunny",
    WeatherCondition.CLOUDY: "Cloudy",
    WeatherCondition.RAINY: "Rainy",
    WeatherCondition.STORMY: "Stormy",
    WeatherCondition.SNOWY: "Snowy",
    WeatherCondition.FOGGY: "Foggy",
}

WEATHER_EMOJI = {
    WeatherCondition.SUNNY: "☀️",
    WeatherCondition.CLOUDY: "☁️",
    WeatherCondition.RAINY: "🌧️",
    WeatherCondition.STORMY: "⛈️",
    WeatherCondition.SNOWY: "🌨️",
    WeatherCondition.FOGGY: "🌫️",
}

ACTIVITY_TITLES = {
    ActivityLevel.NONE: "No Exercise",
    ActivityLevel.LIGHT: "Light Activity",
    ActivityLevel.MODERATE: "Moderate Exercise",
    ActivityLevel.INTENSE: "Intense Workout",
}

ACTIVITY_DESCRIPTIONS = {
    ActivityLevel.NONE: "Sedentary day, no planned exercise",
    ActivityLevel.LIGHT: "Walking, stretching, light movement",
    ActivityLevel.MODERATE: "Jogging, cycling, gym workout",
    ActivityLevel.INTENSE: "High-intensity training, sports",
}

SOCIAL_LABELS = {
    SocialActivity.NONE: "Solo",
    SocialActivity.FRIENDS: "Friends",
    SocialActivity.FAMILY: "Family",
    SocialActivity.WORK: "Colleagues",
    SocialActivity.PARTY: "Party/Event",
    SocialActivity.DATE: "Date",
}


def sleep_quality_label(quality: float) -> str:
    if quality >= 8:
        return "Excellent"
    if quality >= 6:
        return "Good"
    if quality >= 4:
        return "Fair"
    return "Poor"


def sleep_quality_color(quality: float) -> str:
    if quality >= 8:
        return "green"
    if quality >= 6:
        return "orange"
    return "red"


def stress_label(stress: int) -> str:
    if stress <= 3:
        return "Low stress"
    if stress <= 6:
        return "Moderate stress"
    return "High stress"


def stress_color(stress: int) -> str:
    if stress <= 3:
        return "green"
    if stress <= 6:
        return "orange"
    return "red"


def apply_weather(data: CorrelationData, reading: WeatherReading) -> CorrelationData:
    return data.model_copy(
        update={
            "weather": reading.condition,
            "temperature": reading.temperature,
            "weather_description": reading.description,
            "auto_weather": True,
        }
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class CorrelationDataService:
    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store or get_store()

    @staticmethod
    def key_for(day: date) -> str:
        return f"{KEY_PREFIX}{day.isoformat()}"

    def load(self, day: date) -> Optional[CorrelationData]:
        raw = self._store.get(self.key_for(day))
        if not raw:
            return None
        try:
            return CorrelationData.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed correlation data for %s", day)
            return None

    def load_or_new(self, day: date) -> CorrelationData:
        return self.load(day) or CorrelationData(date=day)

    def save(self, day: date, data: CorrelationData) -> bool:
        if data.date != day:
            data = data.model_copy(update={"date": day})
        saved = self._store.set(self.key_for(day), data.model_dump(mode="json"))
        if saved:
            logger.info("Correlation data saved for %s", day)
        return saved

    def load_range(self, start: date, end: date) -> list[CorrelationData]:
        results = []
        current = start
        while current <= end:
            data = self.load(current)
            if data is not None:
                results.append(data)
            current += timedelta(days=1)
        return results


_default_service: CorrelationDataService | None = None


def get_correlation_data_service() -> CorrelationDataService:
    global _default_service
    if _default_service is None:
        _default_service = CorrelationDataService()
    return _default_service
