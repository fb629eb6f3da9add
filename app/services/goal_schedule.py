"""
Goal Schedule
=============

Pure scheduling rules for monthly goals. Nothing here touches the
database, so the rules can be exercised directly in tests.
"""

import calendar
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.models.monthly_goal import GoalStatus, MonthlyGoal

SUNDAY = 0
SATURDAY = 6


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def local_today(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date in ``tz_name`` at instant ``now`` (default: current time)."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def js_weekday(day: date) -> int:
    """Weekday with 0=Sunday … 6=Saturday."""
    return (day.weekday() + 1) % 7


def weekday_permitted(goal: MonthlyGoal, day: date) -> bool:
    weekday = js_weekday(day)
    if not goal.include_weekends and weekday in (SUNDAY, SATURDAY):
        return False
    weekdays = goal.weekdays
    if weekdays and weekday not in weekdays:
        return False
    return True


def is_due(goal: MonthlyGoal, day: date) -> bool:
    """
    Whether ``goal`` should produce a task on ``day``.

    A goal is due when it is active, ``day`` falls inside its window and
    the weekday is permitted by its repeat config.
    """
    if goal.status != GoalStatus.ACTIVE:
        return False
    if day < goal.start_date or day > goal.end_date:
        return False
    return weekday_permitted(goal, day)


def parse_daily_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(hour=int(hours), minute=int(minutes))


def scheduled_at(goal: MonthlyGoal, day: date) -> datetime:
    """UTC instant of ``day`` at the goal's ``daily_time`` in its timezone."""
    local = datetime.combine(day, parse_daily_time(goal.daily_time), tzinfo=ZoneInfo(goal.timezone))
    return local.astimezone(timezone.utc)


def completion_rate(completed: int, total: int) -> int:
    """Integer percentage, rounded half up; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def subtract_months(moment: datetime, months: int) -> datetime:
    """Same day and time ``months`` calendar months earlier (day clamped to month end)."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)
