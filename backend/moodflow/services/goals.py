"""
Goals Service
=============
CRUD for mood goals plus progress calculation.

Goals are stored together as one JSON list under ``mood_goals``. Progress
is recomputed from mood entries each time it is shown:

    average_mood        average rating since the goal was created / target
    consecutive_days    days with any rating, counting back from today
    minimum_mood        share of logged days where every rating >= target
    improvement_streak  consecutive days (counting back from today) whose
                        average beat the day after it
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import ValidationError

from moodflow.db.store import KeyValueStore, get_store
from moodflow.models.goal import (
    MAX_TARGET_DAYS,
    MIN_TARGET_DAYS,
    GoalProgress,
    GoalType,
    GoalTypeOption,
    GoalWithProgress,
    MoodGoal,
)
from moodflow.services.mood_data import MoodDataService, get_mood_data_service, iter_days

logger = logging.getLogger(__name__)

GOALS_KEY = "mood_goals"

GOAL_TYPE_TITLES = {
    GoalType.AVERAGE_MOOD: "Average Mood Goal",
    GoalType.CONSECUTIVE_DAYS: "Logging Streak",
    GoalType.MINIMUM_MOOD: "Minimum Mood Level",
    GoalType.IMPROVEMENT_STREAK: "Improvement Streak",
}

GOAL_TYPE_DESCRIPTIONS = {
    GoalType.AVERAGE_MOOD: "Maintain a target average mood rating",
    GoalType.CONSECUTIVE_DAYS: "Log your mood for consecutive days",
    GoalType.MINIMUM_MOOD: "Keep all mood ratings above a minimum",
    GoalType.IMPROVEMENT_STREAK: "Improve your mood day by day",
}

CARD_LABELS = {
    GoalType.AVERAGE_MOOD: "Average Mood Goal",
    GoalType.CONSECUTIVE_DAYS: "Logging Streak Goal",
    GoalType.MINIMUM_MOOD: "Minimum Mood Goal",
    GoalType.IMPROVEMENT_STREAK: "Improvement Streak Goal",
}


def goal_type_options() -> list[GoalTypeOption]:
    return [
        GoalTypeOption(
            type=goal_type,
            title=GOAL_TYPE_TITLES[goal_type],
            description=GOAL_TYPE_DESCRIPTIONS[goal_type],
            uses_days=goal_type.uses_days,
        )
        for goal_type in GoalType
    ]


class GoalNotFoundError(Exception):
    def __init__(self, goal_id: str) -> None:
        self.goal_id = goal_id
        super().__init__(f"Goal {goal_id} not found")


# ---------------------------------------------------------------------------
# Draft (the create-goal form)
# ---------------------------------------------------------------------------

def _snap_target_value(value: float) -> float:
    # the form slider moves in half points between 1 and 10
    return min(max(round(value * 2) / 2, 1.0), 10.0)


@dataclass
class GoalDraft:
    """Create-goal form state. Title and description follow the type and target."""

    type: GoalType = GoalType.AVERAGE_MOOD
    target_value: float = 7.0
    target_days: int = 7
    title: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        self.target_value = _snap_target_value(self.target_value)
        self.target_days = min(max(self.target_days, MIN_TARGET_DAYS), MAX_TARGET_DAYS)
        if not self.title and not self.description:
            self.autofill()

    def autofill(self) -> None:
        value = f"{self.target_value:.1f}"
        days = self.target_days
        if self.type is GoalType.AVERAGE_MOOD:
            self.title = f"Maintain {value}+ Average Mood"
            self.description = f"Keep your overall mood rating above {value} on average"
        elif self.type is GoalType.CONSECUTIVE_DAYS:
            self.title = f"Log Mood for {days} Days Straight"
            self.description = f"Track your mood consistently for {days} consecutive days"
        elif self.type is GoalType.MINIMUM_MOOD:
            self.title = f"No Days Below {value}"
            self.description = f"Maintain a minimum mood level of {value} every day"
        else:
            self.title = f"Improve Mood for {days} Days"
            self.description = f"Have each day be better than the previous for {days} days"

    def select_type(self, goal_type: GoalType) -> None:
        self.type = goal_type
        self.autofill()

    def set_target_value(self, value: float) -> None:
        self.target_value = _snap_target_value(value)
        self.autofill()

    def set_target_days(self, days: int) -> None:
        self.target_days = min(max(days, MIN_TARGET_DAYS), MAX_TARGET_DAYS)
        self.autofill()

    @property
    def can_submit(self) -> bool:
        return bool(self.title.strip())

    def build(self, now: datetime | None = None) -> MoodGoal:
        if not self.can_submit:
            raise ValueError("Goal title must not be blank")
        now = now or datetime.now()
        return MoodGoal(
            id=str(int(time.time() * 1000)),
            title=self.title.strip(),
            description=self.description.strip(),
            type=self.type,
            target_value=self.target_value,
            target_days=self.target_days,
            created_date=now,
        )


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

def progress_color(progress: float, is_completed: bool = False) -> str:
    if is_completed or progress >= 0.8:
        return "green"
    if progress >= 0.5:
        return "orange"
    return "red"


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class GoalProgressCalculator:
    def __init__(self, mood_data: MoodDataService | None = None) -> None:
        self._mood_data = mood_data or get_mood_data_service()

    def calculate(self, goal: MoodGoal, today: Optional[date] = None) -> GoalProgress:
        if goal.is_completed:
            return GoalProgress(progress=1.0, text="Completed!", color="green")

        today = today or date.today()
        if goal.type is GoalType.AVERAGE_MOOD:
            progress, text = self._average_mood(goal, today)
        elif goal.type is GoalType.CONSECUTIVE_DAYS:
            progress, text = self._consecutive_days(goal, today)
        elif goal.type is GoalType.MINIMUM_MOOD:
            progress, text = self._minimum_mood(goal, today)
        else:
            progress, text = self._improvement_streak(goal, today)

        return GoalProgress(progress=progress, text=text, color=progress_color(progress))

    def _ratings(self, day: date) -> list[float]:
        return [e.rating for e in self._mood_data.load_day(day).values()]

    def _average_mood(self, goal: MoodGoal, today: date) -> tuple[float, str]:
        ratings: list[float] = []
        for day in iter_days(goal.created_date.date(), today):
            ratings.extend(self._ratings(day))

        average = sum(ratings) / len(ratings) if ratings else 0.0
        progress = _clamp(average / goal.target_value)
        return progress, f"Current: {average:.1f}/{goal.target_value:.1f}"

    def _consecutive_days(self, goal: MoodGoal, today: date) -> tuple[float, str]:
        streak = 0
        for offset in range(goal.target_days):
            if not self._ratings(today - timedelta(days=offset)):
                break
            streak += 1

        progress = _clamp(streak / goal.target_days)
        return progress, f"{streak}/{goal.target_days} days"

    def _minimum_mood(self, goal: MoodGoal, today: date) -> tuple[float, str]:
        days_with_data = 0
        days_above = 0
        for day in iter_days(goal.created_date.date(), today):
            ratings = self._ratings(day)
            if not ratings:
                continue
            days_with_data += 1
            if all(r >= goal.target_value for r in ratings):
                days_above += 1

        progress = _clamp(days_above / days_with_data) if days_with_data else 0.0
        return progress, f"{days_above}/{days_with_data} days above {goal.target_value:.1f}"

    def _improvement_streak(self, goal: MoodGoal, today: date) -> tuple[float, str]:
        # walking backwards: each older day must be below the newer one.
        # N improvements need N + 1 logged days.
        streak = 0
        newer_average: Optional[float] = None
        for offset in range(goal.target_days + 1):
            ratings = self._ratings(today - timedelta(days=offset))
            if not ratings:
                break
            average = sum(ratings) / len(ratings)
            if newer_average is not None:
                if average < newer_average:
                    streak += 1
                else:
                    break
            newer_average = average

        progress = _clamp(streak / goal.target_days)
        return progress, f"{streak}/{goal.target_days} improving days"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class GoalsService:
    def __init__(
        self,
        store: KeyValueStore | None = None,
        progress: GoalProgressCalculator | None = None,
    ) -> None:
        self._store = store or get_store()
        self._progress = progress or GoalProgressCalculator()

    def load_goals(self) -> list[MoodGoal]:
        raw = self._store.get(GOALS_KEY)
        if not raw:
            return []
        goals = []
        for item in raw:
            try:
                goals.append(MoodGoal.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed goal record %r", item.get("id") if isinstance(item, dict) else item)
        return goals

    def save_goals(self, goals: list[MoodGoal]) -> bool:
        return self._store.set(GOALS_KEY, [g.model_dump(mode="json") for g in goals])

    def create_goal(self, draft: GoalDraft, now: datetime | None = None) -> MoodGoal:
        goal = draft.build(now)
        goals = self.load_goals()
        goals.append(goal)
        if not self.save_goals(goals):
            raise RuntimeError("Failed to save goals")
        logger.info("Created %s goal %s", goal.type.value, goal.id)
        return goal

    def get_goal(self, goal_id: str) -> MoodGoal:
        for goal in self.load_goals():
            if goal.id == goal_id:
                return goal
        raise GoalNotFoundError(goal_id)

    def delete_goal(self, goal_id: str) -> None:
        goals = self.load_goals()
        remaining = [g for g in goals if g.id != goal_id]
        if len(remaining) == len(goals):
            raise GoalNotFoundError(goal_id)
        if not self.save_goals(remaining):
            raise RuntimeError("Failed to save goals")

    def complete_goal(self, goal_id: str, now: datetime | None = None) -> MoodGoal:
        goals = self.load_goals()
        for i, goal in enumerate(goals):
            if goal.id == goal_id:
                completed = goal.model_copy(
                    update={"is_completed": True, "completed_date": now or datetime.now()}
                )
                goals[i] = completed
                if not self.save_goals(goals):
                    raise RuntimeError("Failed to save goals")
                return completed
        raise GoalNotFoundError(goal_id)

    def with_progress(self, goal: MoodGoal, today: Optional[date] = None) -> GoalWithProgress:
        return GoalWithProgress(
            goal=goal,
            type_label=CARD_LABELS[goal.type],
            progress=self._progress.calculate(goal, today),
        )


_default_service: GoalsService | None = None


def get_goals_service() -> GoalsService:
    global _default_service
    if _default_service is None:
        _default_service = GoalsService()
    return _default_service
