"""
Correlation Data Schemas
========================
Contextual factors the user records for a day (weather, sleep, exercise,
social activity, work stress, tags) so they can be compared against mood.

Every field except ``date`` is optional; a day can be saved with just the
weather. There is no ordering constraint between bedtime and wake_time:
the sleep duration shown to the user treats a negative span as crossing
midnight.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

class WeatherCondition(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    STORMY = "stormy"
    SNOWY = "snowy"
    FOGGY = "foggy"


class ActivityLevel(str, Enum):
    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    INTENSE = "intense"


class SocialActivity(str, Enum):
    NONE = "none"
    FRIENDS = "friends"
    FAMILY = "family"
    WORK = "work"
    PARTY = "party"
    DATE = "date"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class CorrelationData(BaseModel):
    """One day of contextual factors, stored under ``correlation_{date}``."""

    date: date
    weather: Optional[WeatherCondition] = None
    temperature: Optional[float] = None
    weather_description: Optional[str] = None
    auto_weather: bool = False
    sleep_quality: Optional[float] = Field(default=None, ge=1, le=10)
    bedtime: Optional[datetime] = None
    wake_time: Optional[datetime] = None
    exercise_level: Optional[ActivityLevel] = None
    social_activity: Optional[SocialActivity] = None
    work_stress: Optional[int] = Field(default=None, ge=1, le=10)
    custom_tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=2000)


class WeatherReading(BaseModel):
    """Normalised current-weather result from the weather provider."""

    condition: WeatherCondition
    temperature: float
    description: str
    raw: dict[str, Any] = Field(default_factory=dict)


class CorrelationInsight(BaseModel):
    """A detected pattern between one factor and daily mood."""

    title: str
    description: str
    strength: float = Field(..., ge=0.0, le=1.0)
    category: str  # weather | sleep | exercise
    data: dict[str, Any] = Field(default_factory=dict)
