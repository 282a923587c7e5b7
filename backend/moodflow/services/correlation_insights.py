"""
Correlation Insights Service
============================
Looks for patterns between the user's daily factors and their daily
average mood.

Answers three questions over a window (default: last 90 days):

- weather:  is mood noticeably better under some conditions than others?
- sleep:    does better-rated sleep go with better mood? (Pearson r over
            per-quality-level mood averages)
- exercise: are exercise days (moderate or intense) better than days with
            no exercise?

Each answer is only produced with enough data behind it; sparse data gives
no insight rather than a misleading one. The wording is descriptive, never
clinical.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from moodflow.models.correlation import (
    ActivityLevel,
    CorrelationData,
    CorrelationInsight,
    WeatherCondition,
)
from moodflow.services.correlation_data import (
    WEATHER_NAMES,
    CorrelationDataService,
    get_correlation_data_service,
)
from moodflow.services.mood_data import MoodDataService, get_mood_data_service

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_WINDOW_DAYS = 90
MAX_INSIGHTS = 10
# mood is 1-10, so the largest possible difference between two averages is 9
MOOD_SPAN = 9.0

MIN_WEATHER_DAYS = 3
WEATHER_DIFF_THRESHOLD = 1.0

MIN_SLEEP_LEVELS = 3
MIN_DAYS_PER_SLEEP_LEVEL = 2
SLEEP_R_THRESHOLD = 0.3

MIN_DAYS_PER_EXERCISE_LEVEL = 2
EXERCISE_DIFF_THRESHOLD = 0.8

_FRAME_COLUMNS = ["date", "mood", "weather", "sleep_quality", "exercise_level"]


# ---------------------------------------------------------------------------
# Frame building
# ---------------------------------------------------------------------------

def build_frame(daily_moods: dict[date, float], factors: list[CorrelationData]) -> pd.DataFrame:
    """One row per day that has both a mood average and factor data."""
    rows = [
        {
            "date": f.date,
            "mood": daily_moods[f.date],
            "weather": f.weather.value if f.weather else None,
            "sleep_quality": f.sleep_quality,
            "exercise_level": f.exercise_level.value if f.exercise_level else None,
        }
        for f in factors
        if f.date in daily_moods
    ]
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS)


def _strength(difference: float) -> float:
    return float(min(max(difference / MOOD_SPAN, 0.0), 1.0))


def _weather_name(value: str) -> str:
    try:
        return WEATHER_NAMES[WeatherCondition(value)]
    except ValueError:
        return value


# ---------------------------------------------------------------------------
# Analysers
# ---------------------------------------------------------------------------

def analyze_weather(frame: pd.DataFrame) -> list[CorrelationInsight]:
    data = frame.dropna(subset=["weather"])
    if data["weather"].nunique() < 2:
        return []

    stats = data.groupby("weather")["mood"].agg(["mean", "count"])
    stats = stats[stats["count"] >= MIN_WEATHER_DAYS]
    if len(stats) < 2:
        return []

    best = str(stats["mean"].idxmax())
    worst = str(stats["mean"].idxmin())
    best_avg = float(stats.loc[best, "mean"])
    worst_avg = float(stats.loc[worst, "mean"])
    difference = best_avg - worst_avg

    if difference < WEATHER_DIFF_THRESHOLD:
        return []

    best_name = _weather_name(best)
    worst_name = _weather_name(worst)
    return [
        CorrelationInsight(
            title="Weather affects your mood",
            description=(
                f"You feel {difference:.1f} points better on {best_name} days ({best_avg:.1f}) "
                f"vs {worst_name} days ({worst_avg:.1f})"
            ),
            strength=_strength(difference),
            category="weather",
            data={"best": best, "worst": worst, "difference": difference},
        )
    ]


def analyze_sleep(frame: pd.DataFrame) -> list[CorrelationInsight]:
    data = frame.dropna(subset=["sleep_quality"]).copy()
    if data.empty:
        return []

    # half-up rounding onto whole quality levels
    data["level"] = np.floor(data["sleep_quality"].astype(float) + 0.5).astype(int)
    if data["level"].nunique() < MIN_SLEEP_LEVELS:
        return []

    levels = data.groupby("level")["mood"].agg(["mean", "count"])
    levels = levels[levels["count"] >= MIN_DAYS_PER_SLEEP_LEVEL]
    if len(levels) < 2:
        return []

    x = levels.index.to_numpy(dtype=float)
    y = levels["mean"].to_numpy(dtype=float)
    # Guard: no variance means pearsonr is undefined
    if np.std(x) == 0 or np.std(y) == 0:
        return []

    r, _ = pearsonr(x, y)
    r = float(r)
    if np.isnan(r) or abs(r) < SLEEP_R_THRESHOLD:
        return []

    best_level_avg = float(levels["mean"].iloc[-1])
    worst_level_avg = float(levels["mean"].iloc[0])

    if r > 0:
        title = "Better sleep improves mood"
        description = (
            f"Your mood averages {best_level_avg:.1f} after your best-rated sleep "
            f"vs {worst_level_avg:.1f} after your worst"
        )
    else:
        title = "Sleep quality affects mood"
        description = "Your mood does not rise with sleep quality; other factors may matter more"

    return [
        CorrelationInsight(
            title=title,
            description=description,
            strength=min(abs(r), 1.0),
            category="sleep",
            data={"correlation": r, "levels": int(len(levels))},
        )
    ]


def analyze_exercise(frame: pd.DataFrame) -> list[CorrelationInsight]:
    data = frame.dropna(subset=["exercise_level"])
    if data["exercise_level"].nunique() < 2:
        return []

    stats = data.groupby("exercise_level")["mood"].agg(["mean", "count"])
    stats = stats[stats["count"] >= MIN_DAYS_PER_EXERCISE_LEVEL]

    none_key = ActivityLevel.NONE.value
    active_keys = [k for k in (ActivityLevel.MODERATE.value, ActivityLevel.INTENSE.value) if k in stats.index]
    if none_key not in stats.index or not active_keys:
        return []

    no_exercise = float(stats.loc[none_key, "mean"])
    with_exercise = max(float(stats.loc[k, "mean"]) for k in active_keys)
    difference = with_exercise - no_exercise

    if difference < EXERCISE_DIFF_THRESHOLD:
        return []

    return [
        CorrelationInsight(
            title="Exercise boosts your mood",
            description=(
                f"You feel {difference:.1f} points better on days when you exercise "
                f"({with_exercise:.1f}) vs no exercise ({no_exercise:.1f})"
            ),
            strength=_strength(difference),
            category="exercise",
            data={
                "difference": difference,
                "with_exercise": with_exercise,
                "no_exercise": no_exercise,
            },
        )
    ]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class CorrelationInsightsService:
    def __init__(
        self,
        mood_data: MoodDataService | None = None,
        correlation_data: CorrelationDataService | None = None,
    ) -> None:
        self._mood_data = mood_data or get_mood_data_service()
        self._correlation_data = correlation_data or get_correlation_data_service()

    def generate_insights(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[CorrelationInsight]:
        end = end or date.today()
        start = start or end - timedelta(days=DEFAULT_WINDOW_DAYS)

        daily_moods = self._mood_data.daily_averages(start, end)
        factors = self._correlation_data.load_range(start, end)

        if not daily_moods or not factors:
            logger.debug(
                "Not enough data for correlation insights (mood days=%d, factor days=%d)",
                len(daily_moods), len(factors),
            )
            return []

        frame = build_frame(daily_moods, factors)
        if frame.empty:
            return []

        insights = analyze_weather(frame) + analyze_sleep(frame) + analyze_exercise(frame)
        insights.sort(key=lambda i: i.strength, reverse=True)

        logger.info("Generated %d correlation insight(s) for %s..%s", len(insights), start, end)
        return insights[:MAX_INSIGHTS]


_default_service: CorrelationInsightsService | None = None


def get_correlation_insights_service() -> CorrelationInsightsService:
    global _default_service
    if _default_service is None:
        _default_service = CorrelationInsightsService()
    return _default_service
