"""
Screen View Models
==================
What each screen controller's ``render()`` returns. The mobile client draws
these directly; no display decision is left to it.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from moodflow.models.analysis import (
    AnalysisResult,
    AnalysisType,
    DateRange,
    Insight,
    Recommendation,
)
from moodflow.models.correlation import CorrelationData
from moodflow.models.goal import GoalTypeOption, GoalWithProgress


class GradientView(BaseModel):
    colors: list[str]
    begin: list[float]
    end: list[float]


# ---------------------------------------------------------------------------
# Mood log
# ---------------------------------------------------------------------------

class MoodLogView(BaseModel):
    state: str  # loading | ready
    date: date
    segment: int
    title: str
    show_previous_arrow: bool = False
    show_next_arrow: bool = False
    accessible: list[bool] = Field(default_factory=list)
    can_edit: bool = False
    gradient: GradientView
    blur: float = 0.0
    slider_value: float
    note: str = ""
    saving: bool = False


# ---------------------------------------------------------------------------
# Correlations
# ---------------------------------------------------------------------------

class CorrelationView(BaseModel):
    state: str  # loading | ready
    date: date
    tab: str
    data: CorrelationData
    has_changes: bool = False
    weather_label: Optional[str] = None
    sleep_duration: Optional[str] = None
    sleep_quality_label: Optional[str] = None
    sleep_quality_color: Optional[str] = None
    stress_label: Optional[str] = None
    stress_color: Optional[str] = None
    activity_label: Optional[str] = None
    activity_description: Optional[str] = None
    social_label: Optional[str] = None
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

class GoalsView(BaseModel):
    state: str  # loading | empty | ready
    active: list[GoalWithProgress] = Field(default_factory=list)
    completed: list[GoalWithProgress] = Field(default_factory=list)
    goal_types: list[GoalTypeOption] = Field(default_factory=list)
    message: Optional[str] = None


# ---------------------------------------------------------------------------
# AI analysis
# ---------------------------------------------------------------------------

class StyledInsight(BaseModel):
    insight: Insight
    color: str
    icon: str


class StyledRecommendation(BaseModel):
    recommendation: Recommendation
    color: str
    icon: str


class AnalysisView(BaseModel):
    state: str  # analyzing | empty | error | result
    analysis_type: AnalysisType
    date_range: DateRange
    day_count: int
    error: Optional[str] = None
    insights: list[StyledInsight] = Field(default_factory=list)
    recommendations: list[StyledRecommendation] = Field(default_factory=list)
    can_save: bool = False
    result: Optional[AnalysisResult] = None
    message: Optional[str] = None
