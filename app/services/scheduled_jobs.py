"""
Scheduled Jobs
==============

Background maintenance for monthly goals:
- Daily task generation
- Statistics refresh
- Completing goals whose month has ended
- Cleanup of old completed goal tasks

Every goal is processed inside its own SAVEPOINT; a failure is logged,
rolled back and reported in the job summary without aborting the run.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.monthly_goal import GoalStatus, MonthlyGoal
from app.models.task import Task, TaskStatus
from app.services.goal_schedule import local_today, subtract_months
from app.services.monthly_goal_service import MonthlyGoalService

logger = logging.getLogger(__name__)


class ScheduledJobService:
    """Service for scheduled background jobs."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.goals = MonthlyGoalService(db)

    async def _active_goals(self) -> list[MonthlyGoal]:
        stmt = select(MonthlyGoal).where(MonthlyGoal.status == GoalStatus.ACTIVE)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def generate_tasks_for_all_goals(self, now: Optional[datetime] = None) -> dict:
        """
        Generate today's task for every active goal.

        "Today" is evaluated in each goal's own timezone. Run at 00:01 and
        again every hour, so goals west or east of the scheduler timezone get
        their task shortly after their own local midnight.

        Returns:
            Summary of the run
        """
        now = now or datetime.now(timezone.utc)

        created = 0
        processed = 0
        errors = []

        for goal in await self._active_goals():
            today = local_today(goal.timezone, now)
            if not (goal.start_date <= today <= goal.end_date):
                continue
            goal_id = goal.goal_id
            processed += 1
            try:
                async with self.db.begin_nested():
                    task = await self.goals.generate_task_for_goal(goal, today)
                    await self.goals.recompute_stats(goal)
            except Exception as e:
                logger.exception("Task generation failed for goal %s", goal_id)
                errors.append({"goal_id": str(goal_id), "error": str(e)})
                continue
            if task is not None:
                created += 1

        logger.info(
            "generate_tasks_for_all_goals: %d goals, %d tasks created, %d errors",
            processed, created, len(errors),
        )
        return {
            "job": "generate_tasks_for_all_goals",
            "processed": processed,
            "created": created,
            "errors": errors,
            "run_at": now.isoformat(),
        }

    async def update_all_goal_stats(self) -> dict:
        """
        Recompute statistics for every active goal.

        Run hourly and at the end of each day.
        """
        now = datetime.now(timezone.utc)

        processed = 0
        errors = []

        for goal in await self._active_goals():
            goal_id = goal.goal_id
            try:
                async with self.db.begin_nested():
                    await self.goals.recompute_stats(goal)
                processed += 1
            except Exception as e:
                logger.exception("Stats update failed for goal %s", goal_id)
                errors.append({"goal_id": str(goal_id), "error": str(e)})

        logger.info("update_all_goal_stats: %d goals, %d errors", processed, len(errors))
        return {
            "job": "update_all_goal_stats",
            "processed": processed,
            "errors": errors,
            "run_at": now.isoformat(),
        }

    async def complete_finished_goals(self, now: Optional[datetime] = None) -> dict:
        """
        Mark active goals whose month has ended as completed.

        Final statistics are computed before the status changes.
        """
        now = now or datetime.now(timezone.utc)

        # No timezone is more than a day ahead of UTC
        horizon = (now + timedelta(days=1)).date()
        stmt = select(MonthlyGoal).where(
            MonthlyGoal.status == GoalStatus.ACTIVE,
            MonthlyGoal.end_date < horizon,
        )
        result = await self.db.execute(stmt)

        completed = 0
        errors = []

        for goal in result.scalars().all():
            if goal.end_date >= local_today(goal.timezone, now):
                continue
            goal_id = goal.goal_id
            try:
                async with self.db.begin_nested():
                    await self.goals.recompute_stats(goal)
                    goal.status = GoalStatus.COMPLETED
                completed += 1
            except Exception as e:
                logger.exception("Completing goal %s failed", goal_id)
                errors.append({"goal_id": str(goal_id), "error": str(e)})

        logger.info("complete_finished_goals: %d completed, %d errors", completed, len(errors))
        return {
            "job": "complete_finished_goals",
            "completed": completed,
            "errors": errors,
            "run_at": now.isoformat(),
        }

    async def cleanup_old_goal_tasks(self, now: Optional[datetime] = None) -> dict:
        """
        Permanently delete done goal tasks not touched for a few months.

        The retention window is ``GOAL_TASK_RETENTION_MONTHS``. Run weekly.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = subtract_months(now, settings.GOAL_TASK_RETENTION_MONTHS)

        stmt = (
            delete(Task)
            .where(
                Task.monthly_goal_id.is_not(None),
                Task.status == TaskStatus.DONE,
                Task.updated_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        deleted = result.rowcount or 0

        logger.info("cleanup_old_goal_tasks: deleted %d tasks older than %s", deleted, cutoff.isoformat())
        return {
            "job": "cleanup_old_goal_tasks",
            "deleted": deleted,
            "cutoff": cutoff.isoformat(),
            "run_at": now.isoformat(),
        }


# Job runner functions (called from the scheduler)

async def run_daily_generation(db: AsyncSession) -> dict:
    """Run daily goal task generation."""
    service = ScheduledJobService(db)
    return await service.generate_tasks_for_all_goals()


async def run_hourly(db: AsyncSession) -> dict:
    """Catch up task generation for goals past local midnight, then refresh statistics."""
    service = ScheduledJobService(db)
    generation = await service.generate_tasks_for_all_goals()
    stats = await service.update_all_goal_stats()
    return {"job": "hourly", "generation": generation, "stats": stats}


async def run_end_of_day(db: AsyncSession) -> dict:
    """Refresh statistics, then complete goals whose month is over."""
    service = ScheduledJobService(db)
    stats = await service.update_all_goal_stats()
    completion = await service.complete_finished_goals()
    return {"job": "end_of_day", "stats": stats, "completion": completion}


async def run_cleanup(db: AsyncSession) -> dict:
    """Run cleanup of old goal tasks."""
    service = ScheduledJobService(db)
    return await service.cleanup_old_goal_tasks()
