"""
Weather Service
===============
Current weather from the OpenWeatherMap API, normalised to MoodFlow's
six weather conditions.

Responsibilities:
- WeatherClient: one GET against /data/2.5/weather for a lat/lon
- WeatherService.auto_fetch_weather(): what the correlation screen calls;
  answers None when weather is not configured, the date is not today, or
  the provider fails. Auto-fetch is a convenience and never blocks saving.

The API key is sent as a query parameter (the provider requires it) and is
never logged.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import httpx

from moodflow.config import Settings, get_settings
from moodflow.models.correlation import WeatherCondition, WeatherReading

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

_CONDITION_MAP: dict[str, WeatherCondition] = {
    "clear": WeatherCondition.SUNNY,
    "clouds": WeatherCondition.CLOUDY,
    "rain": WeatherCondition.RAINY,
    "drizzle": WeatherCondition.RAINY,
    "thunderstorm": WeatherCondition.STORMY,
    "snow": WeatherCondition.SNOWY,
    "mist": WeatherCondition.FOGGY,
    "fog": WeatherCondition.FOGGY,
    "haze": WeatherCondition.FOGGY,
}

_UNITS = {"celsius": "metric", "fahrenheit": "imperial"}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class WeatherAPIError(Exception):
    """Non-2xx response from the weather provider."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Weather API error {status_code}: {body}")


def map_condition(main: str) -> WeatherCondition:
    """Map an OpenWeatherMap ``weather[0].main`` value; unknown values read as cloudy."""
    return _CONDITION_MAP.get(main.strip().lower(), WeatherCondition.CLOUDY)


def parse_reading(payload: dict) -> WeatherReading:
    weather = (payload.get("weather") or [{}])[0]
    return WeatherReading(
        condition=map_condition(str(weather.get("main", ""))),
        temperature=float(payload.get("main", {}).get("temp", 0.0)),
        description=str(weather.get("description", "")),
        raw=payload,
    )


# ---------------------------------------------------------------------------
# WeatherClient: thin HTTP wrapper
# ---------------------------------------------------------------------------


class WeatherClient:
    def __init__(self, api_key: str, temperature_unit: str = "celsius") -> None:
        self._api_key = api_key
        self._units = _UNITS.get(temperature_unit, "metric")

    async def fetch_current(self, latitude: float, longitude: float) -> WeatherReading:
        """GET current weather. Raises WeatherAPIError on non-2xx."""
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                OPENWEATHER_URL,
                params={
                    "lat": latitude,
                    "lon": longitude,
                    "appid": self._api_key,
                    "units": self._units,
                },
            )
        if not response.is_success:
            raise WeatherAPIError(response.status_code, response.text)
        return parse_reading(response.json())


# ---------------------------------------------------------------------------
# WeatherService
# ---------------------------------------------------------------------------


class WeatherService:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return self._settings.weather_configured

    async def fetch_weather_for_location(
        self, latitude: float, longitude: float
    ) -> Optional[WeatherReading]:
        if not self._settings.weather_api_key:
            logger.warning("Weather API key not configured")
            return None

        client = WeatherClient(self._settings.weather_api_key, self._settings.temperature_unit)
        try:
            return await client.fetch_current(latitude, longitude)
        except WeatherAPIError as exc:
            logger.warning("Weather fetch failed with status %s", exc.status_code)
        except (httpx.HTTPError, ValueError):
            logger.exception("Weather fetch failed")
        return None

    async def auto_fetch_weather(self, day: date, today: date | None = None) -> Optional[WeatherReading]:
        """Current weather for ``day`` at the configured location, if ``day`` is today."""
        if not self.is_configured:
            logger.debug("Skipping weather auto-fetch: weather not configured")
            return None
        if day != (today or date.today()):
            logger.debug("Skipping weather auto-fetch for %s: only today is supported", day)
            return None

        return await self.fetch_weather_for_location(
            self._settings.weather_latitude,  # type: ignore[arg-type]
            self._settings.weather_longitude,  # type: ignore[arg-type]
        )


_default_service: WeatherService | None = None


def get_weather_service() -> WeatherService:
    global _default_service
    if _default_service is None:
        _default_service = WeatherService()
    return _default_service
