"""Goals screen controller: list with progress, create, delete, complete."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from moodflow.models.goal import MoodGoal
from moodflow.models.view import GoalsView
from moodflow.services.goals import (
    GoalDraft,
    GoalNotFoundError,
    GoalsService,
    get_goals_service,
    goal_type_options,
)

logger = logging.getLogger(__name__)

DELETED_MESSAGE = "Goal deleted"
NOT_FOUND_MESSAGE = "Goal not found"
SAVE_FAILED_MESSAGE = "Failed to save goal"


class GoalsScreen:
    def __init__(
        self,
        goals: GoalsService | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._goals = goals or get_goals_service()
        self._clock = clock
        self.state = "loading"
        self.items: list[MoodGoal] = []
        self.message: Optional[str] = None

    async def load(self) -> None:
        self.state = "loading"
        self.items = self._goals.load_goals()
        self.state = "ready"

    async def create(self, draft: GoalDraft) -> Optional[MoodGoal]:
        """Returns None, with ``message`` set, when the goal was not created."""
        try:
            goal = self._goals.create_goal(draft, now=self._clock())
        except ValueError as exc:
            self.message = str(exc)
            return None
        except RuntimeError:
            logger.exception("Failed to create %s goal", draft.type.value)
            self.message = SAVE_FAILED_MESSAGE
            return None
        self.message = None
        await self.load()
        return goal

    async def delete(self, goal_id: str) -> bool:
        try:
            self._goals.delete_goal(goal_id)
        except GoalNotFoundError:
            self.message = NOT_FOUND_MESSAGE
            await self.load()
            return False
        except RuntimeError:
            logger.exception("Failed to delete goal %s", goal_id)
            self.message = SAVE_FAILED_MESSAGE
            return False
        self.message = DELETED_MESSAGE
        await self.load()
        return True

    async def mark_complete(self, goal_id: str) -> Optional[MoodGoal]:
        try:
            goal = self._goals.complete_goal(goal_id, now=self._clock())
        except GoalNotFoundError:
            self.message = NOT_FOUND_MESSAGE
            await self.load()
            return None
        except RuntimeError:
            logger.exception("Failed to complete goal %s", goal_id)
            self.message = SAVE_FAILED_MESSAGE
            return None
        self.message = f"Congratulations! You completed \"{goal.title}\""
        logger.info("Goal %s completed", goal_id)
        await self.load()
        return goal

    def render(self, today: Optional[date] = None) -> GoalsView:
        options = goal_type_options()
        if self.state == "loading":
            return GoalsView(state="loading", goal_types=options, message=self.message)
        if not self.items:
            return GoalsView(state="empty", goal_types=options, message=self.message)

        today = today or self._clock().date()
        active = [self._goals.with_progress(g, today) for g in self.items if not g.is_completed]
        completed = [self._goals.with_progress(g, today) for g in self.items if g.is_completed]
        return GoalsView(
            state="ready",
            active=active,
            completed=completed,
            goal_types=options,
            message=self.message,
        )
