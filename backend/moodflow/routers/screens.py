"""
Screens Router
==============
GET    /api/v1/screens/mood-log                  — Mood log view for right now.
GET    /api/v1/screens/correlations/{date}       — Daily factors view for one day.
GET    /api/v1/screens/goals                     — Active/completed goals and type choices.
POST   /api/v1/screens/goals/{id}/complete       — Complete a goal; view carries the outcome.
DELETE /api/v1/screens/goals/{id}                — Delete a goal; view carries the outcome.
POST   /api/v1/screens/analysis                  — Run an analysis; styled result view.

Each endpoint builds the screen controller, drives it, and returns its
``render()`` output. Problems a screen can recover from (a missing goal, a
failed save) come back in the view's ``message`` rather than as an error
status.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from moodflow.models.analysis import AnalysisRequest
from moodflow.models.view import AnalysisView, CorrelationView, GoalsView, MoodLogView
from moodflow.screens.ai_analysis import AIAnalysisScreen
from moodflow.screens.correlation import TABS, CorrelationScreen
from moodflow.screens.goals import GoalsScreen
from moodflow.screens.mood_log import MoodLogScreen
from moodflow.services.analysis import get_analysis_service
from moodflow.services.correlation_data import get_correlation_data_service
from moodflow.services.goals import get_goals_service
from moodflow.services.mood_data import get_mood_data_service
from moodflow.services.segments import get_segment_service
from moodflow.services.weather import get_weather_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/screens", tags=["screens"])


def _now() -> datetime:
    return datetime.now()


def _today() -> date:
    return _now().date()


# ---------------------------------------------------------------------------
# Mood log
# ---------------------------------------------------------------------------

@router.get("/mood-log", response_model=MoodLogView, summary="Mood log screen")
async def mood_log_view(
    segment: Optional[int] = Query(default=None, description="Open on this segment if it is open"),
    dark: bool = Query(default=False),
) -> MoodLogView:
    # one-shot render: animations finish immediately
    screen = MoodLogScreen(
        get_mood_data_service(),
        get_segment_service(),
        clock=_now,
        is_dark_mode=dark,
        slider_duration=0,
        blur_duration=0,
        gradient_duration=0,
    )
    await screen.initialize(requested_segment=segment)
    return screen.render()


# ---------------------------------------------------------------------------
# Correlations
# ---------------------------------------------------------------------------

@router.get("/correlations/{day}", response_model=CorrelationView, summary="Daily factors screen")
async def correlation_view(
    day: date,
    tab: str = Query(default=TABS[0], description=" | ".join(TABS)),
) -> CorrelationView:
    screen = CorrelationScreen(get_correlation_data_service(), get_weather_service(), today=_today)
    try:
        screen.select_tab(tab)
        await screen.select_date(day)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "code": "invalid_selection"},
        ) from exc
    if screen.state != "ready":
        await screen.load()
    return screen.render()


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

async def _goals_screen() -> GoalsScreen:
    screen = GoalsScreen(get_goals_service(), clock=_now)
    await screen.load()
    return screen


@router.get("/goals", response_model=GoalsView, summary="Goals screen")
async def goals_view() -> GoalsView:
    screen = await _goals_screen()
    return screen.render()


@router.post("/goals/{goal_id}/complete", response_model=GoalsView, summary="Complete a goal from the goals screen")
async def complete_goal_view(goal_id: str) -> GoalsView:
    screen = await _goals_screen()
    await screen.mark_complete(goal_id)
    return screen.render()


@router.delete("/goals/{goal_id}", response_model=GoalsView, summary="Delete a goal from the goals screen")
async def delete_goal_view(goal_id: str) -> GoalsView:
    screen = await _goals_screen()
    await screen.delete(goal_id)
    return screen.render()


# ---------------------------------------------------------------------------
# AI analysis
# ---------------------------------------------------------------------------

@router.post("/analysis", response_model=AnalysisView, summary="AI analysis screen")
async def analysis_view(body: AnalysisRequest) -> AnalysisView:
    screen = AIAnalysisScreen(get_analysis_service(), today=_today)
    screen.apply_request(body)
    await screen.perform_analysis()
    return screen.render()
