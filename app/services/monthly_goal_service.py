"""
Monthly Goal Service
====================

Business logic for monthly goals: CRUD, daily task generation and
statistics.

Statistics are never maintained incrementally. Every refresh counts the
goal's tasks again, so running it any number of times, in any order,
yields the same numbers.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.monthly_goal import GoalStatus, MonthlyGoal
from app.models.task import Task, TaskPriority, TaskStatus
from app.schemas.monthly_goal import MonthlyGoalCreate, MonthlyGoalUpdate
from app.services.goal_schedule import (
    completion_rate,
    is_due,
    local_today,
    month_bounds,
    scheduled_at,
)

logger = logging.getLogger(__name__)

GOAL_TASK_PROJECT = "Monthly Goals"
GOAL_TASK_TAGS = ["monthly-goal", "recurring"]


class MonthlyGoalService:
    """Service for monthly goal operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create_goal(
        self,
        user_id: uuid.UUID,
        goal_data: MonthlyGoalCreate,
        now: Optional[datetime] = None,
    ) -> MonthlyGoal:
        """
        Create a goal spanning the current calendar month.

        The month is taken in the goal's own timezone. Today's task is
        generated straight away if today is a due day.
        """
        today = local_today(goal_data.timezone, now)
        start_date, end_date = month_bounds(today)

        goal = MonthlyGoal(
            user_id=user_id,
            title=goal_data.title,
            description=goal_data.description,
            daily_time=goal_data.daily_time,
            start_date=start_date,
            end_date=end_date,
            timezone=goal_data.timezone,
            status=GoalStatus.ACTIVE,
            repeat_config=goal_data.repeat_config.model_dump(),
        )
        self.db.add(goal)
        await self.db.flush()

        await self.generate_task_for_goal(goal, today)
        return goal

    async def get_goal(
        self,
        goal_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Optional[MonthlyGoal]:
        """Get goal by ID ensuring it belongs to user."""
        stmt = select(MonthlyGoal).where(
            MonthlyGoal.goal_id == goal_id,
            MonthlyGoal.user_id == user_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_goals(
        self,
        user_id: uuid.UUID,
        status: Optional[GoalStatus] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[MonthlyGoal]:
        """
        List a user's goals, newest first.

        With ``month`` and ``year`` only goals whose window overlaps that
        month are returned.
        """
        conditions = [MonthlyGoal.user_id == user_id]
        if status is not None:
            conditions.append(MonthlyGoal.status == status)
        if month is not None and year is not None:
            first, last = month_bounds(date(year, month, 1))
            conditions.append(MonthlyGoal.start_date <= last)
            conditions.append(MonthlyGoal.end_date >= first)

        stmt = (
            select(MonthlyGoal)
            .where(*conditions)
            .order_by(MonthlyGoal.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_goal_tasks(self, goal: MonthlyGoal) -> list[Task]:
        """Tasks generated for a goal, ordered by due date."""
        stmt = (
            select(Task)
            .where(Task.monthly_goal_id == goal.goal_id)
            .order_by(Task.due_date.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_goal(
        self,
        goal: MonthlyGoal,
        goal_data: MonthlyGoalUpdate,
    ) -> MonthlyGoal:
        """
        Update an existing goal (merge semantics).

        ``repeatConfig`` is replaced as a whole; keys it omits take their
        defaults rather than the previous values.
        """
        for field, value in goal_data.model_dump(exclude_unset=True, exclude={"repeat_config"}).items():
            if value is None:
                continue
            setattr(goal, field, value)

        if goal_data.repeat_config is not None:
            goal.repeat_config = goal_data.repeat_config.model_dump()

        await self.db.flush()
        return goal

    async def delete_goal(self, goal: MonthlyGoal) -> None:
        """Delete a goal together with every task it generated."""
        await self.db.execute(
            delete(Task).where(Task.monthly_goal_id == goal.goal_id)
        )
        await self.db.delete(goal)
        await self.db.flush()

    # =========================================================================
    # Generation & statistics
    # =========================================================================

    async def generate_task_for_goal(
        self,
        goal: MonthlyGoal,
        today: date,
    ) -> Optional[Task]:
        """
        Create the task for ``today`` if the goal is due and has none yet.

        Safe to call repeatedly: at most one task exists per goal per day.

        Returns:
            The created task, or None when nothing was created
        """
        if not is_due(goal, today):
            return None

        if await self._get_task_for_day(goal.goal_id, today) is not None:
            return None

        task = Task(
            user_id=goal.user_id,
            monthly_goal_id=goal.goal_id,
            title=goal.title,
            description=goal.description,
            status=TaskStatus.TODO,
            priority=TaskPriority.MEDIUM,
            project=GOAL_TASK_PROJECT,
            tags=list(GOAL_TASK_TAGS),
            due_date=scheduled_at(goal, today),
            goal_date=today,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(task)
        except IntegrityError:
            # Another run created it concurrently
            logger.info("Task for goal %s on %s already exists", goal.goal_id, today)
            return None

        await self.recompute_stats(goal)
        logger.debug("Generated task %s for goal %s on %s", task.task_id, goal.goal_id, today)
        return task

    async def recompute_stats(self, goal: MonthlyGoal) -> dict:
        """
        Recount the goal's tasks inside its month window and store the result.

        Returns:
            The new stats document
        """
        total, completed = await self._count_goal_tasks(
            goal.goal_id, goal.start_date, goal.end_date,
        )
        stats = {
            "completedDays": completed,
            "totalDays": total,
            "completionRate": completion_rate(completed, total),
            "lastStatsUpdate": datetime.now(timezone.utc).isoformat(),
        }
        goal.stats = stats
        await self.db.flush()
        return stats

    async def progress_report(
        self,
        user_id: uuid.UUID,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> dict:
        """
        Summarize a user's goals for one month (default: current UTC month).

        Per-goal figures are counted from the tasks, not read from the
        stored stats.
        """
        today = datetime.now(timezone.utc).date()
        month = month or today.month
        year = year or today.year
        first, last = month_bounds(date(year, month, 1))

        goals = await self.list_goals(user_id, month=month, year=year)

        stmt = (
            select(
                Task.monthly_goal_id,
                func.count().label("total"),
                func.sum(
                    case(
                        (Task.status == TaskStatus.DONE, 1),
                        else_=0,
                    )
                ).label("completed"),
            )
            .where(
                Task.user_id == user_id,
                Task.monthly_goal_id.is_not(None),
                Task.goal_date >= first,
                Task.goal_date <= last,
            )
            .group_by(Task.monthly_goal_id)
        )
        result = await self.db.execute(stmt)
        counts: dict[uuid.UUID, tuple[int, int]] = {
            row.monthly_goal_id: (row.total, int(row.completed or 0))
            for row in result
        }

        items = []
        for goal in goals:
            total, completed = counts.get(goal.goal_id, (0, 0))
            items.append({
                "id": str(goal.goal_id),
                "title": goal.title,
                "completedDays": completed,
                "totalDays": total,
                "completionRate": completion_rate(completed, total),
                "status": goal.status.value,
            })

        return {
            "month": month,
            "year": year,
            "totalGoals": len(goals),
            "activeGoals": sum(1 for g in goals if g.status == GoalStatus.ACTIVE),
            "totalTasks": sum(item["completedDays"] for item in items),
            "goals": items,
        }

    async def _get_task_for_day(
        self,
        goal_id: uuid.UUID,
        day: date,
    ) -> Optional[Task]:
        stmt = select(Task).where(
            Task.monthly_goal_id == goal_id,
            Task.goal_date == day,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _count_goal_tasks(
        self,
        goal_id: uuid.UUID,
        first: date,
        last: date,
    ) -> tuple[int, int]:
        """Return (total, completed) task counts for a goal between two days."""
        stmt = (
            select(
                func.count().label("total"),
                func.sum(
                    case(
                        (Task.status == TaskStatus.DONE, 1),
                        else_=0,
                    )
                ).label("completed"),
            )
            .select_from(Task)
            .where(
                Task.monthly_goal_id == goal_id,
                Task.goal_date >= first,
                Task.goal_date <= last,
            )
        )
        result = await self.db.execute(stmt)
        row = result.one()
        return row.total or 0, int(row.completed or 0)
