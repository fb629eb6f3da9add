"""
Monthly Goals API Endpoints
===========================

Handles monthly goal CRUD, progress reporting and on-demand statistics
refresh.
"""

import logging
from typing import Annotated, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ErrorCodes, NotFoundError
from app.db.session import get_db
from app.dependencies import CurrentUser
from app.models.monthly_goal import GoalStatus, MonthlyGoal
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.monthly_goal import (
    MonthlyGoalCreate,
    MonthlyGoalDetailResponse,
    MonthlyGoalListResponse,
    MonthlyGoalResponse,
    MonthlyGoalUpdate,
    ProgressReportResponse,
)
from app.services.goal_schedule import completion_rate
from app.services.monthly_goal_service import MonthlyGoalService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_owned_goal(
    goal_service: MonthlyGoalService,
    goal_id: uuid.UUID,
    user_id: uuid.UUID,
) -> MonthlyGoal:
    goal = await goal_service.get_goal(goal_id, user_id)
    if goal is None:
        raise NotFoundError(
            code=ErrorCodes.GOAL_NOT_FOUND,
            message="Monthly goal not found",
        )
    return goal


@router.post(
    "",
    response_model=MonthlyGoalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_goal(
    goal_data: MonthlyGoalCreate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Create a goal for the current month.

    If today is a due day its task is generated immediately.
    """
    goal_service = MonthlyGoalService(db)
    goal = await goal_service.create_goal(current_user.user_id, goal_data)

    logger.info("User %s created monthly goal %s", current_user.user_id, goal.goal_id)

    return MonthlyGoalResponse(
        success=True,
        data=goal.to_api_dict(),
        message="Monthly goal created successfully",
    )


@router.get(
    "",
    response_model=MonthlyGoalListResponse,
)
async def list_goals(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    goal_status: Optional[GoalStatus] = Query(default=None, alias="status"),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
):
    """
    List the current user's goals, newest first.
    """
    goal_service = MonthlyGoalService(db)
    goals = await goal_service.list_goals(
        current_user.user_id,
        status=goal_status,
        month=month,
        year=year,
    )

    return MonthlyGoalListResponse(
        success=True,
        data=[g.to_api_dict() for g in goals],
    )


@router.get(
    "/progress/report",
    response_model=ProgressReportResponse,
)
async def progress_report(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
):
    """
    Monthly progress summary across all of the user's goals.
    """
    goal_service = MonthlyGoalService(db)
    report = await goal_service.progress_report(current_user.user_id, month=month, year=year)

    return ProgressReportResponse(success=True, data=report)


@router.get(
    "/{goal_id}",
    response_model=MonthlyGoalDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_goal(
    goal_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Get a goal with its generated tasks and progress.
    """
    goal_service = MonthlyGoalService(db)
    goal = await _get_owned_goal(goal_service, goal_id, current_user.user_id)
    tasks = await goal_service.get_goal_tasks(goal)

    goal_dict = goal.to_api_dict()
    stats = goal_dict["stats"]
    completed = stats["completedDays"]
    total = stats["totalDays"]

    return MonthlyGoalDetailResponse(
        success=True,
        data={
            "goal": goal_dict,
            "tasks": [t.to_api_dict() for t in tasks],
            "progress": {
                "completed": completed,
                "total": total,
                "rate": completion_rate(completed, total),
            },
        },
    )


@router.put(
    "/{goal_id}",
    response_model=MonthlyGoalResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_goal(
    goal_id: uuid.UUID,
    goal_data: MonthlyGoalUpdate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Update a goal. Only supplied fields change.
    """
    goal_service = MonthlyGoalService(db)
    goal = await _get_owned_goal(goal_service, goal_id, current_user.user_id)

    updated = await goal_service.update_goal(goal, goal_data)

    return MonthlyGoalResponse(
        success=True,
        data=updated.to_api_dict(),
        message="Monthly goal updated successfully",
    )


@router.delete(
    "/{goal_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
)
async def delete_goal(
    goal_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Delete a goal and every task it generated.
    """
    goal_service = MonthlyGoalService(db)
    goal = await _get_owned_goal(goal_service, goal_id, current_user.user_id)

    await goal_service.delete_goal(goal)
    logger.info("User %s deleted monthly goal %s", current_user.user_id, goal_id)

    return MessageResponse(
        success=True,
        message="Monthly goal and associated tasks deleted successfully",
    )


@router.post(
    "/{goal_id}/stats/refresh",
    response_model=MonthlyGoalResponse,
    responses={404: {"model": ErrorResponse}},
)
async def refresh_goal_stats(
    goal_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Recompute a goal's statistics now.
    """
    goal_service = MonthlyGoalService(db)
    goal = await _get_owned_goal(goal_service, goal_id, current_user.user_id)

    await goal_service.recompute_stats(goal)

    return MonthlyGoalResponse(
        success=True,
        data=goal.to_api_dict(),
        message="Statistics updated",
    )
