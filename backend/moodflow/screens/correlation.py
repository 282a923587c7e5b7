"""
Correlation Screen
==================
Controller for the "Daily Factors" screen: one day's weather, sleep,
activity and other factors, edited across four tabs and saved explicitly.

Bedtime is placed on the selected date and wake time on the day after, so
a night's sleep reads naturally; the displayed duration is computed mod
24h either way.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from moodflow.models.correlation import CorrelationData
from moodflow.models.view import CorrelationView
from moodflow.services.correlation_data import (
    ACTIVITY_DESCRIPTIONS,
    ACTIVITY_TITLES,
    SOCIAL_LABELS,
    WEATHER_EMOJI,
    WEATHER_NAMES,
    CorrelationDataService,
    apply_weather,
    format_duration,
    get_correlation_data_service,
    sleep_duration,
    sleep_quality_color,
    sleep_quality_label,
    stress_color,
    stress_label,
)
from moodflow.services.weather import WeatherService, get_weather_service

logger = logging.getLogger(__name__)

TABS = ("weather", "sleep", "activity", "other")
# how far back the date picker goes
MAX_HISTORY_DAYS = 365

SAVED_MESSAGE = "Correlation data saved!"


class CorrelationScreen:
    def __init__(
        self,
        correlation_data: CorrelationDataService | None = None,
        weather: WeatherService | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._correlation_data = correlation_data or get_correlation_data_service()
        self._weather = weather or get_weather_service()
        self._today = today

        self.state = "loading"
        self.selected_date: date = today()
        self.tab = TABS[0]
        self.data = CorrelationData(date=self.selected_date)
        self.has_changes = False
        self.message: Optional[str] = None

    async def load(self) -> None:
        self.state = "loading"
        self.data = self._correlation_data.load_or_new(self.selected_date)
        self.has_changes = False
        self.state = "ready"

    def select_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab {tab!r}")
        self.tab = tab

    async def select_date(self, day: date) -> None:
        today = self._today()
        if day > today or day < today - timedelta(days=MAX_HISTORY_DAYS):
            raise ValueError(f"{day} is outside the last {MAX_HISTORY_DAYS} days")
        if day == self.selected_date:
            return
        if self.has_changes:
            await self.save()
        self.selected_date = day
        await self.load()

    # -- edits ---------------------------------------------------------------

    def update(self, **fields) -> None:
        # validate through the model so bad values never reach the store
        merged = {**self.data.model_dump(), **fields, "date": self.selected_date}
        self.data = CorrelationData.model_validate(merged)
        self.has_changes = True
        self.message = None

    def set_bedtime(self, hour: int, minute: int) -> None:
        self.update(bedtime=datetime.combine(self.selected_date, time(hour, minute)))

    def set_wake_time(self, hour: int, minute: int) -> None:
        next_day = self.selected_date + timedelta(days=1)
        self.update(wake_time=datetime.combine(next_day, time(hour, minute)))

    def add_tag(self, tag: str) -> bool:
        tag = tag.strip()
        if not tag or tag in self.data.custom_tags:
            return False
        self.update(custom_tags=[*self.data.custom_tags, tag])
        return True

    def remove_tag(self, tag: str) -> bool:
        if tag not in self.data.custom_tags:
            return False
        self.update(custom_tags=[t for t in self.data.custom_tags if t != tag])
        return True

    async def auto_fetch_weather(self) -> bool:
        reading = await self._weather.auto_fetch_weather(self.selected_date, today=self._today())
        if reading is None:
            return False
        self.data = apply_weather(self.data, reading)
        self.has_changes = True
        return True

    async def save(self) -> bool:
        if not self.has_changes:
            return False
        saved = self._correlation_data.save(self.selected_date, self.data)
        if saved:
            self.has_changes = False
            self.message = SAVED_MESSAGE
        else:
            logger.warning("Correlation data for %s was not saved", self.selected_date)
        return saved

    # -- output --------------------------------------------------------------

    def render(self) -> CorrelationView:
        data = self.data
        weather_label = None
        if data.weather is not None:
            weather_label = f"{WEATHER_EMOJI[data.weather]} {WEATHER_NAMES[data.weather]}"

        duration = None
        if data.bedtime is not None and data.wake_time is not None:
            duration = format_duration(sleep_duration(data.bedtime, data.wake_time))

        activity_label = activity_description = None
        if data.exercise_level is not None:
            activity_label = ACTIVITY_TITLES[data.exercise_level]
            activity_description = ACTIVITY_DESCRIPTIONS[data.exercise_level]

        return CorrelationView(
            state=self.state,
            date=self.selected_date,
            tab=self.tab,
            data=data,
            has_changes=self.has_changes,
            weather_label=weather_label,
            sleep_duration=duration,
            sleep_quality_label=sleep_quality_label(data.sleep_quality) if data.sleep_quality is not None else None,
            sleep_quality_color=sleep_quality_color(data.sleep_quality) if data.sleep_quality is not None else None,
            stress_label=stress_label(data.work_stress) if data.work_stress is not None else None,
            stress_color=stress_color(data.work_stress) if data.work_stress is not None else None,
            activity_label=activity_label,
            activity_description=activity_description,
            social_label=SOCIAL_LABELS[data.social_activity] if data.social_activity is not None else None,
            message=self.message,
        )
