"""
Job Scheduler
=============

APScheduler wiring for the goal maintenance jobs. Each run gets its own
database session, committed on success and rolled back on failure.
"""

import logging
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db.session import get_session_factory
from app.services.scheduled_jobs import (
    run_cleanup,
    run_daily_generation,
    run_end_of_day,
    run_hourly,
)

logger = logging.getLogger(__name__)

JobRunner = Callable[[AsyncSession], Awaitable[dict]]

_scheduler: Optional[AsyncIOScheduler] = None


async def run_job(name: str, runner: JobRunner) -> Optional[dict]:
    """Execute one job in a fresh session; failures are logged, not raised."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            summary = await runner(session)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Scheduled job %s failed", name)
            return None
    logger.debug("Scheduled job %s finished: %s", name, summary)
    return summary


async def _daily_generation() -> None:
    await run_job("daily_generation", run_daily_generation)


async def _end_of_day() -> None:
    await run_job("end_of_day", run_end_of_day)


async def _hourly() -> None:
    await run_job("hourly", run_hourly)


async def _weekly_cleanup() -> None:
    await run_job("weekly_cleanup", run_cleanup)


def create_scheduler(tz: Optional[str] = None) -> AsyncIOScheduler:
    """Build a scheduler with all goal jobs registered (not started)."""
    tz = tz or settings.SCHEDULER_TIMEZONE
    scheduler = AsyncIOScheduler(timezone=tz)

    jobs = [
        ("goal_daily_generation", _daily_generation, CronTrigger(hour=0, minute=1, timezone=tz)),
        ("goal_end_of_day", _end_of_day, CronTrigger(hour=23, minute=59, timezone=tz)),
        ("goal_hourly", _hourly, CronTrigger(minute=0, timezone=tz)),
        ("goal_weekly_cleanup", _weekly_cleanup, CronTrigger(day_of_week="sun", hour=2, minute=0, timezone=tz)),
    ]
    for job_id, func, trigger in jobs:
        scheduler.add_job(
            func,
            trigger,
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )
    return scheduler


def start_scheduler() -> AsyncIOScheduler:
    """Start the global scheduler (idempotent). Must run inside the event loop."""
    global _scheduler
    if _scheduler is None:
        _scheduler = create_scheduler()
        _scheduler.start()
        logger.info("Goal scheduler started (timezone: %s)", settings.SCHEDULER_TIMEZONE)
    return _scheduler


def shutdown_scheduler() -> None:
    """Stop the global scheduler if it is running."""
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Goal scheduler stopped")
