"""
Monthly Goal Model
==================

A recurring goal that spans one calendar month and materializes one
task per due day.
"""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING
import uuid

from sqlalchemy import (
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin
from app.utils.helpers import format_datetime

if TYPE_CHECKING:
    from app.models.task import Task
    from app.models.user import User


DEFAULT_WEEKDAYS = [1, 2, 3, 4, 5]


class GoalStatus(str, Enum):
    """Monthly goal lifecycle status."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def default_repeat_config() -> dict:
    return {"weekdays": list(DEFAULT_WEEKDAYS), "includeWeekends": False}


def empty_stats() -> dict:
    return {
        "completedDays": 0,
        "totalDays": 0,
        "completionRate": 0,
        "lastStatsUpdate": None,
    }


class MonthlyGoal(Base, TimestampMixin):
    """
    Monthly goal model.

    ``repeat_config`` and ``stats`` are JSON documents; always assign a
    new dict instead of mutating in place so the change is flushed.
    """

    __tablename__ = "monthly_goals"

    goal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    # Local time of day ("HH:MM") the generated task is due at
    daily_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="UTC",
    )
    status: Mapped[GoalStatus] = mapped_column(
        SQLEnum(GoalStatus, name="goalstatus", create_constraint=True, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=GoalStatus.ACTIVE,
    )
    repeat_config: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=default_repeat_config,
    )
    stats: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=empty_stats,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="monthly_goals",
    )
    tasks: Mapped[list["Task"]] = relationship(
        "Task",
        back_populates="monthly_goal",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_goal_user_status", "user_id", "status"),
        Index("idx_goal_window", "status", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<MonthlyGoal(goal_id={self.goal_id}, title={self.title[:30]})>"

    @property
    def weekdays(self) -> list[int]:
        return list((self.repeat_config or {}).get("weekdays") or [])

    @property
    def include_weekends(self) -> bool:
        return bool((self.repeat_config or {}).get("includeWeekends", False))

    def to_api_dict(self) -> dict:
        stats = {**empty_stats(), **(self.stats or {})}
        return {
            "id": str(self.goal_id),
            "userId": str(self.user_id),
            "title": self.title,
            "description": self.description,
            "dailyTime": self.daily_time,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "timezone": self.timezone,
            "status": self.status.value,
            "repeatConfig": {
                "weekdays": self.weekdays,
                "includeWeekends": self.include_weekends,
            },
            "stats": stats,
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }
