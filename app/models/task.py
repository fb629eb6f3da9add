"""
Task Models
===========

SQLAlchemy model for tasks, including those generated by monthly goals.
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional
import uuid

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType, TimestampMixin
from app.utils.helpers import format_datetime

if TYPE_CHECKING:
    from app.models.monthly_goal import MonthlyGoal
    from app.models.user import User


# =============================================================================
# Enums
# =============================================================================

class TaskStatus(str, Enum):
    """Task workflow status."""
    TODO = "To do"
    IN_PROGRESS = "In progress"
    ON_APPROVAL = "On approval"
    DONE = "Done"


class TaskPriority(str, Enum):
    """Task priority level."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Models
# =============================================================================

class Task(Base, TimestampMixin):
    """
    Task model.

    Tasks are soft-deleted by archiving; hard deletion removes the row.
    Tasks generated by a monthly goal carry ``monthly_goal_id`` and the
    calendar day they were generated for in ``goal_date``.
    """

    __tablename__ = "tasks"

    # Primary Key
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Foreign Keys
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    monthly_goal_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("monthly_goals.goal_id", ondelete="CASCADE"),
        nullable=True,
    )

    # Task details
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(TaskStatus, name="taskstatus", create_constraint=True, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=TaskStatus.TODO,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        SQLEnum(TaskPriority, name="taskpriority", create_constraint=True, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    project: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    tags: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    reminder_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_archived: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    goal_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="tasks",
    )
    monthly_goal: Mapped[Optional["MonthlyGoal"]] = relationship(
        "MonthlyGoal",
        back_populates="tasks",
    )

    # Constraints and Indexes
    __table_args__ = (
        UniqueConstraint("monthly_goal_id", "goal_date", name="uq_task_goal_date"),
        Index("idx_task_user_due", "user_id", "due_date"),
        Index("idx_task_user_status", "user_id", "status"),
        Index("idx_task_user_archived", "user_id", "is_archived"),
    )

    def __repr__(self) -> str:
        return f"<Task(task_id={self.task_id}, title={self.title[:30]})>"

    def archive(self) -> None:
        self.is_archived = True

    def restore(self) -> None:
        self.is_archived = False

    def to_api_dict(self) -> dict:
        """
        Serialize to the API response format expected by clients.

        Uses camelCase keys; ``id`` is the server id referenced by sync
        operations.
        """
        return {
            "id": str(self.task_id),
            "userId": str(self.user_id),
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "project": self.project,
            "tags": list(self.tags or []),
            "dueDate": format_datetime(self.due_date),
            "reminderAt": format_datetime(self.reminder_at),
            "isArchived": self.is_archived,
            "monthlyGoalId": str(self.monthly_goal_id) if self.monthly_goal_id else None,
            "goalDate": self.goal_date.isoformat() if self.goal_date else None,
            "createdAt": format_datetime(self.created_at),
            "updatedAt": format_datetime(self.updated_at),
        }
