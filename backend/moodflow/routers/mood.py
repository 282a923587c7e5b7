"""
Mood Router
===========
GET /api/v1/mood/{date}              — All three segments for a day.
PUT /api/v1/mood/today/{segment}     — Save today's rating and note.
GET /api/v1/mood/gradient            — Background gradient for a live mood.

Only today's segments are writable, and only once they have opened
according to the notification settings:

    morning   from midnight
    midday    from the midday reminder time
    evening   from the evening reminder time

A write to a segment that has not opened yet is rejected with 403
``segment_locked``. The first-logged timestamp of an entry survives edits.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from moodflow.models.mood import (
    MAX_RATING,
    MIN_RATING,
    NEUTRAL_RATING,
    SEGMENT_NAMES,
    DayMoodResponse,
    MoodEntry,
    MoodSaveRequest,
    SegmentState,
)
from moodflow.models.view import GradientView
from moodflow.services.gradient import MoodGradientService, fallback_gradient
from moodflow.services.mood_data import get_mood_data_service
from moodflow.services.segments import (
    SegmentLockedError,
    accessibility,
    current_segment_index,
    get_segment_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/mood", tags=["mood"])


def _now() -> datetime:
    return datetime.now()


def _check_segment(segment: int) -> None:
    if not 0 <= segment < len(SEGMENT_NAMES):
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"segment must be between 0 and {len(SEGMENT_NAMES) - 1}",
                "code": "invalid_segment",
            },
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

# Declared before /{day} so "gradient" is not parsed as a date
@router.get(
    "/gradient",
    response_model=GradientView,
    summary="Background gradient for the mood log screen",
)
async def get_gradient(
    mood: Optional[float] = Query(default=None, ge=MIN_RATING, le=MAX_RATING),
    segment: int = Query(default=0),
    dark: bool = Query(default=False, description="Fallback palette when no mood is given"),
) -> GradientView:
    if mood is None:
        return GradientView(**fallback_gradient(dark).to_dict())
    _check_segment(segment)

    service = MoodGradientService(get_mood_data_service(), get_segment_service())
    gradient = service.compute_gradient_for_mood(mood, segment, now=_now())
    return GradientView(**gradient.to_dict())


@router.get(
    "/{day}",
    response_model=DayMoodResponse,
    summary="Mood entries for one day",
)
async def get_day(day: date) -> DayMoodResponse:
    now = _now()
    settings = get_segment_service().load_settings()

    if day == now.date():
        open_segments = accessibility(now, settings)
        current = current_segment_index(now, settings)
    else:
        # past days are read-only history; future days have nothing open
        open_segments = {i: day < now.date() for i in range(len(SEGMENT_NAMES))}
        current = 0

    entries = get_mood_data_service().load_day(day)
    segments = []
    for index, name in enumerate(SEGMENT_NAMES):
        entry = entries.get(index)
        segments.append(
            SegmentState(
                segment=index,
                name=name,
                accessible=open_segments[index],
                rating=entry.rating if entry else NEUTRAL_RATING,
                note=entry.note if entry else "",
                logged=entry is not None,
            )
        )
    return DayMoodResponse(date=day, current_segment=current, segments=segments)


@router.put(
    "/today/{segment}",
    response_model=MoodEntry,
    summary="Save today's mood for a segment",
    responses={
        403: {"description": "Segment has not opened yet"},
        422: {"description": "Validation error (rating, segment, note length)"},
    },
)
async def save_today(segment: int, body: MoodSaveRequest) -> MoodEntry:
    _check_segment(segment)
    now = _now()

    try:
        get_segment_service().ensure_writable(segment, now)
    except SegmentLockedError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": str(exc), "code": "segment_locked"},
        ) from exc

    mood_data = get_mood_data_service()
    if not mood_data.save_mood(now.date(), segment, body.rating, body.note, now=now):
        logger.error("Failed to save mood for %s segment %d", now.date(), segment)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to save mood", "code": "db_error"},
        )

    return mood_data.load_mood(now.date(), segment)
