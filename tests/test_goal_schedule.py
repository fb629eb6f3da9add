"""
Goal Schedule Tests
===================

Due-day rules, local dates and completion maths for monthly goals.
"""

from datetime import date, datetime, timezone

import pytest

from app.models.monthly_goal import GoalStatus, MonthlyGoal
from app.services.goal_schedule import (
    completion_rate,
    is_due,
    js_weekday,
    local_today,
    month_bounds,
    scheduled_at,
    subtract_months,
)


def make_goal(**overrides) -> MonthlyGoal:
    fields = dict(
        title="Read",
        daily_time="09:30",
        start_date=date(2026, 10, 1),
        end_date=date(2026, 10, 31),
        timezone="UTC",
        status=GoalStatus.ACTIVE,
        repeat_config={"weekdays": [1, 2, 3, 4, 5], "includeWeekends": False},
    )
    fields.update(overrides)
    return MonthlyGoal(**fields)


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2026, 2, 10), (date(2026, 2, 1), date(2026, 2, 28))),
        (date(2028, 2, 29), (date(2028, 2, 1), date(2028, 2, 29))),
        (date(2026, 12, 31), (date(2026, 12, 1), date(2026, 12, 31))),
    ],
)
def test_month_bounds(day, expected):
    assert month_bounds(day) == expected


def test_js_weekday_starts_on_sunday():
    assert js_weekday(date(2026, 10, 18)) == 0  # Sunday
    assert js_weekday(date(2026, 10, 19)) == 1  # Monday
    assert js_weekday(date(2026, 10, 24)) == 6  # Saturday


def test_local_today_crosses_date_line():
    instant = datetime(2026, 10, 31, 20, 0, tzinfo=timezone.utc)

    assert local_today("UTC", instant) == date(2026, 10, 31)
    assert local_today("Asia/Tokyo", instant) == date(2026, 11, 1)
    assert local_today("America/Los_Angeles", instant) == date(2026, 10, 31)


def test_local_today_treats_naive_as_utc():
    assert local_today("Asia/Tokyo", datetime(2026, 10, 31, 20, 0)) == date(2026, 11, 1)


def test_weekday_goal_skips_weekends():
    goal = make_goal()

    assert is_due(goal, date(2026, 10, 19))  # Monday
    assert is_due(goal, date(2026, 10, 23))  # Friday
    assert not is_due(goal, date(2026, 10, 24))  # Saturday
    assert not is_due(goal, date(2026, 10, 25))  # Sunday


def test_listed_weekend_day_still_needs_include_weekends():
    goal = make_goal(repeat_config={"weekdays": [0, 6], "includeWeekends": False})
    assert not is_due(goal, date(2026, 10, 24))

    goal = make_goal(repeat_config={"weekdays": [0, 6], "includeWeekends": True})
    assert is_due(goal, date(2026, 10, 24))
    assert not is_due(goal, date(2026, 10, 19))


def test_empty_weekdays_means_every_permitted_day():
    goal = make_goal(repeat_config={"weekdays": [], "includeWeekends": True})

    assert all(is_due(goal, date(2026, 10, d)) for d in range(1, 32))


def test_missing_include_weekends_keeps_weekends_off():
    goal = make_goal(repeat_config={"weekdays": []})

    assert is_due(goal, date(2026, 10, 19))  # Monday
    assert not is_due(goal, date(2026, 10, 24))  # Saturday
    assert goal.to_api_dict()["repeatConfig"]["includeWeekends"] is False


def test_not_due_outside_window_or_when_inactive():
    goal = make_goal()
    assert not is_due(goal, date(2026, 9, 30))
    assert not is_due(goal, date(2026, 11, 2))

    for status in (GoalStatus.PAUSED, GoalStatus.COMPLETED, GoalStatus.CANCELLED):
        assert not is_due(make_goal(status=status), date(2026, 10, 19))


def test_scheduled_at_is_utc_instant_of_local_time():
    goal = make_goal(timezone="America/New_York", daily_time="09:30")

    # EDT (UTC-4) in October, EST (UTC-5) after the switch in November
    assert scheduled_at(goal, date(2026, 10, 19)) == datetime(2026, 10, 19, 13, 30, tzinfo=timezone.utc)
    assert scheduled_at(goal, date(2026, 11, 2)) == datetime(2026, 11, 2, 14, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "completed, total, expected",
    [
        (0, 0, 0),
        (0, 5, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 rounds up
        (5, 5, 100),
    ],
)
def test_completion_rate(completed, total, expected):
    assert completion_rate(completed, total) == expected


@pytest.mark.parametrize(
    "moment, months, expected",
    [
        (datetime(2026, 10, 19, 2, 0), 3, datetime(2026, 7, 19, 2, 0)),
        (datetime(2026, 2, 15), 3, datetime(2025, 11, 15)),
        (datetime(2026, 5, 31), 3, datetime(2026, 2, 28)),
    ],
)
def test_subtract_months(moment, months, expected):
    assert subtract_months(moment, months) == expected
