"""
Correlations Router
===================
GET  /api/v1/correlations/insights        — Factor/mood patterns (default: last 90 days).
GET  /api/v1/correlations/{date}          — One day's factors (empty record if none).
PUT  /api/v1/correlations/{date}          — Replace one day's factors.
POST /api/v1/correlations/{date}/weather  — Fill in today's weather from the provider.

The insights endpoint only reports a pattern when there is enough data
behind it, so a new user gets an empty list rather than noise.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from moodflow.models.correlation import CorrelationData, CorrelationInsight
from moodflow.services.correlation_data import apply_weather, get_correlation_data_service
from moodflow.services.correlation_insights import get_correlation_insights_service
from moodflow.services.weather import get_weather_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/correlations", tags=["correlations"])


@router.get(
    "/insights",
    response_model=list[CorrelationInsight],
    summary="Patterns between daily factors and mood",
)
async def get_insights(
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
) -> list[CorrelationInsight]:
    if start and end and end < start:
        raise HTTPException(
            status_code=422,
            detail={"message": "end must not be before start", "code": "invalid_range"},
        )
    return get_correlation_insights_service().generate_insights(start, end)


@router.get("/{day}", response_model=CorrelationData, summary="Factors for one day")
async def get_day(day: date) -> CorrelationData:
    return get_correlation_data_service().load_or_new(day)


@router.put("/{day}", response_model=CorrelationData, summary="Save factors for one day")
async def put_day(day: date, body: CorrelationData) -> CorrelationData:
    service = get_correlation_data_service()
    if not service.save(day, body):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to save correlation data", "code": "db_error"},
        )
    return service.load_or_new(day)


@router.post(
    "/{day}/weather",
    response_model=CorrelationData,
    summary="Auto-fill the weather for today",
    responses={
        409: {"description": "Weather is only available for today"},
        503: {"description": "Weather provider not configured or unavailable"},
    },
)
async def fetch_weather(day: date) -> CorrelationData:
    weather = get_weather_service()
    if not weather.is_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "Weather is not configured", "code": "weather_not_configured"},
        )
    if day != date.today():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Weather can only be fetched for today", "code": "weather_not_today"},
        )

    reading = await weather.auto_fetch_weather(day)
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "Weather provider unavailable", "code": "weather_unavailable"},
        )

    service = get_correlation_data_service()
    updated = apply_weather(service.load_or_new(day), reading)
    if not service.save(day, updated):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to save correlation data", "code": "db_error"},
        )
    logger.info("Weather for %s set to %s", day, reading.condition.value)
    return updated
