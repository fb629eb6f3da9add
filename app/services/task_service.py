"""
Task Service
============

Business logic for task management: listing, CRUD, archiving and
permanent deletion.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task, TaskPriority
from app.schemas.common import PaginationParams
from app.schemas.task import TaskCreate, TaskListFilters, TaskUpdate

# Fields that may be cleared by sending null
NULLABLE_FIELDS = {"due_date", "reminder_at"}

PRIORITY_RANK = case(
    (Task.priority == TaskPriority.HIGH, 0),
    (Task.priority == TaskPriority.MEDIUM, 1),
    else_=2,
)


class TaskService:
    """Service for task operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_task_by_id(
        self,
        task_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Optional[Task]:
        """Get task by ID ensuring it belongs to user."""
        stmt = select(Task).where(
            Task.task_id == task_id,
            Task.user_id == user_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_tasks(
        self,
        user_id: uuid.UUID,
        filters: TaskListFilters,
        pagination: PaginationParams,
    ) -> tuple[list[Task], int]:
        """
        List a user's tasks.

        Archived tasks are only returned when ``filters.archived`` is set,
        and then exclusively. Ordered by due date (undated last), then by
        priority from high to low.

        Returns:
            Tuple of (page of tasks, total matching count)
        """
        conditions = [
            Task.user_id == user_id,
            Task.is_archived == filters.archived,
        ]
        if filters.q:
            conditions.append(Task.title.icontains(filters.q, autoescape=True))
        if filters.status is not None:
            conditions.append(Task.status == filters.status)
        if filters.project:
            conditions.append(Task.project == filters.project)

        count_stmt = select(func.count()).select_from(Task).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = (
            select(Task)
            .where(*conditions)
            .order_by(
                Task.due_date.is_(None),
                Task.due_date.asc(),
                PRIORITY_RANK,
                Task.created_at.desc(),
            )
            .offset(pagination.offset)
            .limit(pagination.limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_task(
        self,
        user_id: uuid.UUID,
        task_data: TaskCreate,
    ) -> Task:
        """Create a new task."""
        task = Task(
            user_id=user_id,
            title=task_data.title,
            description=task_data.description,
            status=task_data.status,
            priority=task_data.priority,
            project=task_data.project,
            tags=list(task_data.tags),
            due_date=task_data.due_date,
            reminder_at=task_data.reminder_at,
        )
        self.db.add(task)
        await self.db.flush()
        return task

    async def update_task(
        self,
        task: Task,
        task_data: TaskUpdate,
    ) -> Task:
        """
        Update an existing task.

        Merge semantics: only fields present in the payload are written;
        omitted fields keep their current values.
        """
        for field, value in task_data.model_dump(exclude_unset=True).items():
            if value is None and field not in NULLABLE_FIELDS:
                continue
            if field == "tags":
                value = list(value)
            setattr(task, field, value)

        await self.db.flush()
        return task

    async def archive_task(self, task: Task) -> Task:
        """
        Soft-delete a task.

        Raises:
            TaskAlreadyArchivedError: If the task is already archived
        """
        if task.is_archived:
            raise TaskAlreadyArchivedError(task.task_id)
        task.archive()
        await self.db.flush()
        return task

    async def restore_task(self, task: Task) -> Task:
        """
        Bring an archived task back.

        Raises:
            TaskNotArchivedError: If the task is not archived
        """
        if not task.is_archived:
            raise TaskNotArchivedError(task.task_id)
        task.restore()
        await self.db.flush()
        return task

    async def hard_delete_task(self, task: Task) -> dict:
        """
        Permanently delete a task.

        Returns:
            Summary of the deleted task
        """
        summary = {
            "id": str(task.task_id),
            "title": task.title,
            "deletedAt": datetime.now(timezone.utc).isoformat(),
        }
        await self.db.delete(task)
        await self.db.flush()
        return summary


# =============================================================================
# Custom Exceptions
# =============================================================================

class TaskAlreadyArchivedError(Exception):
    """Raised when archiving a task that is already archived."""

    def __init__(self, task_id: uuid.UUID):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is already archived")


class TaskNotArchivedError(Exception):
    """Raised when restoring a task that is not archived."""

    def __init__(self, task_id: uuid.UUID):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is not archived")
