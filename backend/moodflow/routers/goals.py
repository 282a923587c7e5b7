"""
Goals Router
============
GET    /api/v1/goals                 — All goals with live progress.
GET    /api/v1/goals/types           — Goal type choices for the create form.
POST   /api/v1/goals                 — Create a goal (blank title is auto-filled).
POST   /api/v1/goals/{id}/complete   — Mark a goal completed.
DELETE /api/v1/goals/{id}            — Delete a goal.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from moodflow.models.goal import GoalCreateRequest, GoalTypeOption, GoalWithProgress
from moodflow.services.goals import (
    GoalDraft,
    GoalNotFoundError,
    get_goals_service,
    goal_type_options,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/goals", tags=["goals"])


def _not_found(exc: GoalNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"message": str(exc), "code": "goal_not_found"},
    )


def _save_failed() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": "Failed to save goals", "code": "db_error"},
    )


@router.get("", response_model=list[GoalWithProgress], summary="List goals")
async def list_goals() -> list[GoalWithProgress]:
    service = get_goals_service()
    return [service.with_progress(goal) for goal in service.load_goals()]


@router.get("/types", response_model=list[GoalTypeOption], summary="Goal type choices")
async def list_goal_types() -> list[GoalTypeOption]:
    return goal_type_options()


@router.post(
    "",
    response_model=GoalWithProgress,
    status_code=status.HTTP_201_CREATED,
    summary="Create a goal",
)
async def create_goal(body: GoalCreateRequest) -> GoalWithProgress:
    draft = GoalDraft(type=body.type, target_value=body.target_value, target_days=body.target_days)
    # explicit text wins over the auto-filled wording
    if body.title is not None:
        draft.title = body.title
    if body.description is not None:
        draft.description = body.description

    if not draft.can_submit:
        raise HTTPException(
            status_code=422,
            detail={"message": "Goal title must not be blank", "code": "invalid_title"},
        )

    service = get_goals_service()
    try:
        goal = service.create_goal(draft)
    except RuntimeError as exc:
        raise _save_failed() from exc
    return service.with_progress(goal)


@router.post("/{goal_id}/complete", response_model=GoalWithProgress, summary="Complete a goal")
async def complete_goal(goal_id: str) -> GoalWithProgress:
    service = get_goals_service()
    try:
        goal = service.complete_goal(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc) from exc
    except RuntimeError as exc:
        raise _save_failed() from exc
    return service.with_progress(goal)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a goal")
async def delete_goal(goal_id: str) -> None:
    try:
        get_goals_service().delete_goal(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc) from exc
    except RuntimeError as exc:
        raise _save_failed() from exc
