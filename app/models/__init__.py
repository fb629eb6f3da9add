"""
Database Models
===============

SQLAlchemy ORM models for all database entities.

All models are imported here to ensure they are registered
with SQLAlchemy's metadata for migrations and relationships.
"""

from app.models.user import User
from app.models.refresh_token import RefreshToken
from app.models.task import Task, TaskPriority, TaskStatus
from app.models.monthly_goal import GoalStatus, MonthlyGoal

__all__ = [
    # User
    "User",
    "RefreshToken",
    # Task
    "Task",
    "TaskStatus",
    "TaskPriority",
    # Monthly goal
    "MonthlyGoal",
    "GoalStatus",
]
