"""
Task Schemas
============

Pydantic schemas for task endpoints and the batch sync endpoint.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.task import TaskPriority, TaskStatus
from app.schemas.common import PaginationMeta


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes from clients are taken to be UTC."""
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


# =============================================================================
# Request Schemas
# =============================================================================

class TaskCreate(BaseModel):
    """
    Request schema for creating a task.

    Unknown keys are ignored so that sync clients can send their full
    local record (including ``_id`` / ``userId``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    project: str = Field(default="", max_length=255)
    tags: list[str] = Field(default_factory=list)
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    reminder_at: Optional[datetime] = Field(None, alias="reminderAt")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("due_date", "reminder_at")
    @classmethod
    def normalize_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class TaskUpdate(BaseModel):
    """
    Request schema for updating a task.

    Merge semantics: only fields present in the payload are written.
    ``dueDate`` / ``reminderAt`` may be set to null to clear them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    project: Optional[str] = Field(None, max_length=255)
    tags: Optional[list[str]] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    reminder_at: Optional[datetime] = Field(None, alias="reminderAt")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("due_date", "reminder_at")
    @classmethod
    def normalize_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class TaskListFilters(BaseModel):
    """Query filters for listing tasks."""

    q: Optional[str] = None
    status: Optional[TaskStatus] = None
    project: Optional[str] = None
    archived: bool = False


class SyncOperation(BaseModel):
    """One client-side mutation to replay on the server."""

    model_config = ConfigDict(extra="ignore")

    op: str
    clientOpId: Optional[Union[str, int]] = None
    clientId: Optional[Union[str, int]] = None
    task: dict[str, Any] = Field(default_factory=dict)


class SyncRequest(BaseModel):
    """
    Ordered batch of client operations.

    Entries stay raw here; each one is validated as a ``SyncOperation``
    when it is applied.
    """

    operations: list[Any] = Field(default_factory=list, max_length=500)


# =============================================================================
# Response Schemas
# =============================================================================

class TaskApiResponse(BaseModel):
    """
    Response schema for a task.

    Uses camelCase field names to match the client contract.
    """

    id: str
    userId: str
    title: str
    description: str
    status: str
    priority: str
    project: str
    tags: list[str]
    dueDate: Optional[str] = None
    reminderAt: Optional[str] = None
    isArchived: bool
    monthlyGoalId: Optional[str] = None
    goalDate: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class TaskResponse(BaseModel):
    """Single task response."""

    success: bool = True
    data: TaskApiResponse
    message: Optional[str] = None


class TaskListResponse(BaseModel):
    """Paginated task list response."""

    success: bool = True
    data: list[TaskApiResponse]
    pagination: PaginationMeta


class DeletedTaskData(BaseModel):
    """Summary of a permanently deleted task."""

    id: str
    title: str
    deletedAt: str


class DeleteTaskResponse(BaseModel):
    """Response for task deletion (archive or hard delete)."""

    success: bool = True
    message: str
    data: Optional[Union[TaskApiResponse, DeletedTaskData]] = None


class SyncResult(BaseModel):
    """Outcome of one sync operation, keyed by the client's op id."""

    clientOpId: Optional[Union[str, int]] = None
    status: Literal["success", "error"]
    serverTask: Optional[TaskApiResponse] = None
    message: Optional[str] = None


class SyncMapping(BaseModel):
    """Client-side id → server id for a record created by sync."""

    clientId: Optional[Union[str, int]] = None
    serverId: str


class SyncData(BaseModel):
    results: list[SyncResult]
    mappings: list[SyncMapping]


class SyncResponse(BaseModel):
    success: bool = True
    data: SyncData
