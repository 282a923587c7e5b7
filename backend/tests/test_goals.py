"""
Tests for goals
===============
Covers:
- GoalDraft: auto-filled wording per type, target snapping/clamping,
  blank title rejected
- Progress: completed, average mood, logging streak, minimum mood,
  improvement streak, colour thresholds
- GoalsService: create, load, delete, complete, not-found, failed saves,
  malformed records skipped

Run: pytest backend/tests/test_goals.py -v
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from moodflow.models.goal import GoalType, MoodGoal
from moodflow.services.goals import (
    GOALS_KEY,
    GoalDraft,
    GoalNotFoundError,
    GoalProgressCalculator,
    GoalsService,
    progress_color,
)
from moodflow.services.mood_data import MoodDataService

TODAY = date(2026, 3, 10)
CREATED = datetime(2026, 3, 1, 9, 0)


def _goal(goal_type: GoalType, target_value: float = 7.0, target_days: int = 5, **extra) -> MoodGoal:
    return MoodGoal(
        id="g1",
        title="A goal",
        type=goal_type,
        target_value=target_value,
        target_days=target_days,
        created_date=CREATED,
        **extra,
    )


def _log(mood_data: MoodDataService, days_ago: int, *ratings: float) -> None:
    day = TODAY - timedelta(days=days_ago)
    for segment, rating in enumerate(ratings):
        mood_data.save_mood(day, segment, rating)


# ---------------------------------------------------------------------------
# Draft
# ---------------------------------------------------------------------------

class TestGoalDraft:

    def test_default_wording(self):
        draft = GoalDraft()
        assert draft.title == "Maintain 7.0+ Average Mood"
        assert draft.description == "Keep your overall mood rating above 7.0 on average"

    @pytest.mark.parametrize(
        "goal_type, title",
        [
            (GoalType.CONSECUTIVE_DAYS, "Log Mood for 7 Days Straight"),
            (GoalType.MINIMUM_MOOD, "No Days Below 7.0"),
            (GoalType.IMPROVEMENT_STREAK, "Improve Mood for 7 Days"),
        ],
    )
    def test_wording_follows_type(self, goal_type, title):
        draft = GoalDraft()
        draft.select_type(goal_type)
        assert draft.title == title

    def test_targets_snap_and_clamp(self):
        draft = GoalDraft()
        draft.set_target_value(6.3)
        assert draft.target_value == 6.5
        draft.set_target_value(42)
        assert draft.target_value == 10.0
        draft.set_target_days(1)
        assert draft.target_days == 3
        draft.set_target_days(90)
        assert draft.target_days == 30

    def test_custom_text_kept(self):
        draft = GoalDraft(title="My own", description="Mine")
        assert draft.title == "My own"

    def test_blank_title_rejected(self):
        draft = GoalDraft()
        draft.title = "   "
        assert draft.can_submit is False
        with pytest.raises(ValueError):
            draft.build()

    def test_build(self):
        goal = GoalDraft(type=GoalType.MINIMUM_MOOD, target_value=5.0).build(now=CREATED)
        assert goal.type is GoalType.MINIMUM_MOOD
        assert goal.title == "No Days Below 5.0"
        assert goal.created_date == CREATED
        assert goal.id.isdigit()
        assert goal.is_completed is False


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class TestProgress:

    @pytest.fixture
    def mood_data(self, store) -> MoodDataService:
        return MoodDataService(store)

    @pytest.fixture
    def calculator(self, mood_data) -> GoalProgressCalculator:
        return GoalProgressCalculator(mood_data)

    def test_completed(self, calculator):
        progress = calculator.calculate(_goal(GoalType.AVERAGE_MOOD, is_completed=True), TODAY)
        assert progress.progress == 1.0
        assert progress.text == "Completed!"
        assert progress.color == "green"

    def test_average_mood(self, calculator, mood_data):
        _log(mood_data, 0, 6.0, 8.0)
        _log(mood_data, 1, 4.0)
        # before the goal existed, ignored
        mood_data.save_mood(date(2026, 2, 20), 0, 1.0)

        progress = calculator.calculate(_goal(GoalType.AVERAGE_MOOD, target_value=8.0), TODAY)
        assert progress.progress == pytest.approx(6.0 / 8.0)
        assert progress.text == "Current: 6.0/8.0"
        assert progress.color == "orange"

    def test_average_capped_at_one(self, calculator, mood_data):
        _log(mood_data, 0, 10.0)
        progress = calculator.calculate(_goal(GoalType.AVERAGE_MOOD, target_value=5.0), TODAY)
        assert progress.progress == 1.0

    def test_average_without_data(self, calculator):
        progress = calculator.calculate(_goal(GoalType.AVERAGE_MOOD), TODAY)
        assert progress.progress == 0.0
        assert progress.color == "red"

    def test_consecutive_days(self, calculator, mood_data):
        for days_ago in (0, 1, 2, 4):
            _log(mood_data, days_ago, 5.0)

        progress = calculator.calculate(_goal(GoalType.CONSECUTIVE_DAYS, target_days=5), TODAY)
        assert progress.text == "3/5 days"
        assert progress.progress == pytest.approx(0.6)

    def test_consecutive_days_capped(self, calculator, mood_data):
        for days_ago in range(8):
            _log(mood_data, days_ago, 5.0)

        progress = calculator.calculate(_goal(GoalType.CONSECUTIVE_DAYS, target_days=5), TODAY)
        assert progress.text == "5/5 days"
        assert progress.progress == 1.0

    def test_minimum_mood(self, calculator, mood_data):
        _log(mood_data, 0, 7.0, 8.0)
        _log(mood_data, 1, 7.0, 4.0)
        _log(mood_data, 2, 9.0)

        progress = calculator.calculate(_goal(GoalType.MINIMUM_MOOD, target_value=6.0), TODAY)
        assert progress.text == "2/3 days above 6.0"
        assert progress.progress == pytest.approx(2 / 3)

    def test_improvement_streak(self, calculator, mood_data):
        # oldest -> newest: 5, 3, 4, 6, 8 -> three consecutive improvements ending today
        for days_ago, rating in [(4, 5.0), (3, 3.0), (2, 4.0), (1, 6.0), (0, 8.0)]:
            _log(mood_data, days_ago, rating)

        progress = calculator.calculate(_goal(GoalType.IMPROVEMENT_STREAK, target_days=5), TODAY)
        assert progress.text == "3/5 improving days"

    def test_declining_days_do_not_count(self, calculator, mood_data):
        for days_ago, rating in [(2, 8.0), (1, 6.0), (0, 4.0)]:
            _log(mood_data, days_ago, rating)

        progress = calculator.calculate(_goal(GoalType.IMPROVEMENT_STREAK, target_days=3), TODAY)
        assert progress.text == "0/3 improving days"

    def test_improvement_streak_can_complete(self, calculator, mood_data):
        # ten strictly improving days, oldest lowest
        for days_ago in range(10):
            _log(mood_data, days_ago, 9.0 - days_ago * 0.5)

        progress = calculator.calculate(_goal(GoalType.IMPROVEMENT_STREAK, target_days=7), TODAY)
        assert progress.text == "7/7 improving days"
        assert progress.progress == pytest.approx(1.0)

    def test_improvement_streak_needs_one_more_day_than_target(self, calculator, mood_data):
        for days_ago in range(7):
            _log(mood_data, days_ago, 9.0 - days_ago * 0.5)

        progress = calculator.calculate(_goal(GoalType.IMPROVEMENT_STREAK, target_days=7), TODAY)
        assert progress.text == "6/7 improving days"

    @pytest.mark.parametrize(
        "value, completed, color",
        [(0.8, False, "green"), (0.79, False, "orange"), (0.5, False, "orange"),
         (0.49, False, "red"), (0.0, True, "green")],
    )
    def test_colors(self, value, completed, color):
        assert progress_color(value, completed) == color


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TestGoalsService:

    @pytest.fixture
    def service(self, store) -> GoalsService:
        return GoalsService(store, GoalProgressCalculator(MoodDataService(store)))

    def test_create_and_load(self, service):
        goal = service.create_goal(GoalDraft(), now=CREATED)
        goals = service.load_goals()
        assert [g.id for g in goals] == [goal.id]
        assert service.get_goal(goal.id).title == "Maintain 7.0+ Average Mood"

    def test_delete(self, service, store):
        store.set(GOALS_KEY, [_goal(GoalType.AVERAGE_MOOD).model_dump(mode="json")])
        service.delete_goal("g1")
        assert service.load_goals() == []

    def test_delete_missing(self, service):
        with pytest.raises(GoalNotFoundError):
            service.delete_goal("nope")

    def test_complete(self, service, store):
        store.set(GOALS_KEY, [_goal(GoalType.AVERAGE_MOOD).model_dump(mode="json")])
        done_at = datetime(2026, 3, 9, 20, 0)

        completed = service.complete_goal("g1", now=done_at)

        assert completed.is_completed is True
        assert completed.completed_date == done_at
        assert service.get_goal("g1").is_completed is True

    def test_complete_missing(self, service):
        with pytest.raises(GoalNotFoundError):
            service.complete_goal("nope")

    def test_failed_save_raises(self, service, store):
        store.fail_writes = True
        with pytest.raises(RuntimeError):
            service.create_goal(GoalDraft())

    def test_malformed_records_skipped(self, service, store):
        store.data[GOALS_KEY] = [
            {"id": "bad"},
            _goal(GoalType.MINIMUM_MOOD).model_dump(mode="json"),
        ]
        assert [g.id for g in service.load_goals()] == ["g1"]

    def test_with_progress(self, service, store):
        store.set(GOALS_KEY, [_goal(GoalType.CONSECUTIVE_DAYS).model_dump(mode="json")])
        item = service.with_progress(service.get_goal("g1"), TODAY)
        assert item.type_label == "Logging Streak Goal"
        assert item.progress.text == "0/5 days"
