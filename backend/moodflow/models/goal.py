"""
Mood Goal Schemas
=================
User-defined goals. All goals live in one list under the ``mood_goals``
key; progress is computed on read from the stored mood entries, never
stored.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class GoalType(str, Enum):
    AVERAGE_MOOD = "average_mood"            # "Maintain 7+ average mood"
    CONSECUTIVE_DAYS = "consecutive_days"    # "Log mood 7 days in a row"
    MINIMUM_MOOD = "minimum_mood"            # "Have no days below 5"
    IMPROVEMENT_STREAK = "improvement_streak"  # "Improve mood 3 days in a row"

    @property
    def uses_days(self) -> bool:
        return self in (GoalType.CONSECUTIVE_DAYS, GoalType.IMPROVEMENT_STREAK)


MIN_TARGET_DAYS = 3
MAX_TARGET_DAYS = 30


class MoodGoal(BaseModel):
    id: str
    title: str
    description: str = ""
    type: GoalType
    target_value: float = Field(default=7.0, ge=1, le=10)
    target_days: int = Field(default=7, ge=1)
    created_date: datetime
    completed_date: Optional[datetime] = None
    is_completed: bool = False


class GoalCreateRequest(BaseModel):
    """Body of POST /api/v1/goals. Blank title/description are auto-filled."""

    type: GoalType
    target_value: float = Field(default=7.0, ge=1, le=10)
    target_days: int = Field(default=7, ge=MIN_TARGET_DAYS, le=MAX_TARGET_DAYS)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)


class GoalProgress(BaseModel):
    progress: float = Field(..., ge=0.0, le=1.0)
    text: str
    color: str  # green | orange | red


class GoalWithProgress(BaseModel):
    goal: MoodGoal
    type_label: str
    progress: GoalProgress


class GoalTypeOption(BaseModel):
    """One choice in the create-goal type picker."""

    type: GoalType
    title: str
    description: str
    uses_days: bool  # days slider instead of the mood-value slider
