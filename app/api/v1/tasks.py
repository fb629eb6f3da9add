"""
Tasks API Endpoints
===================

Handles task CRUD, archiving/restoring, permanent deletion and the
batch sync endpoint.
"""

import logging
from typing import Annotated, Optional
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BadRequestError, ErrorCodes, NotFoundError
from app.core.rate_limit import create_rate_limit_dependency
from app.db.session import get_db
from app.dependencies import CurrentUser
from app.models.task import Task, TaskStatus
from app.schemas.common import ErrorResponse, PaginationMeta, PaginationParams
from app.schemas.task import (
    DeleteTaskResponse,
    SyncRequest,
    SyncResponse,
    TaskCreate,
    TaskListFilters,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from app.services.sync_service import SyncService
from app.services.task_service import (
    TaskAlreadyArchivedError,
    TaskNotArchivedError,
    TaskService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_owned_task(
    task_service: TaskService,
    task_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Task:
    task = await task_service.get_task_by_id(task_id, user_id)
    if task is None:
        raise NotFoundError(
            code=ErrorCodes.TASK_NOT_FOUND,
            message="Task not found",
        )
    return task


@router.get(
    "",
    response_model=TaskListResponse,
)
async def list_tasks(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    q: Optional[str] = Query(default=None, description="Case-insensitive title search"),
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    project: Optional[str] = Query(default=None),
    archived: bool = Query(default=False, description="Show only archived tasks"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=100, ge=1, le=500),
):
    """
    List the current user's tasks.

    Ordered by due date (tasks without one last), then priority high to low.
    """
    filters = TaskListFilters(q=q, status=task_status, project=project, archived=archived)
    pagination = PaginationParams(page=page, limit=limit)

    task_service = TaskService(db)
    tasks, total = await task_service.list_tasks(current_user.user_id, filters, pagination)

    return TaskListResponse(
        success=True,
        data=[t.to_api_dict() for t in tasks],
        pagination=PaginationMeta.build(pagination, total),
    )


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    task_data: TaskCreate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Create a new task.
    """
    task_service = TaskService(db)
    task = await task_service.create_task(
        user_id=current_user.user_id,
        task_data=task_data,
    )

    return TaskResponse(
        success=True,
        data=task.to_api_dict(),
        message="Task created successfully",
    )


@router.post(
    "/sync",
    response_model=SyncResponse,
    dependencies=[Depends(create_rate_limit_dependency("sync"))],
)
async def sync_tasks(
    body: SyncRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Apply a batch of offline client operations.

    Each operation succeeds or fails on its own; the response lists one
    result per operation in request order plus client→server id mappings
    for created tasks.
    """
    sync_service = SyncService(db)
    data = await sync_service.apply(current_user.user_id, body.operations)

    return SyncResponse(success=True, data=data)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Get a specific task by ID.
    """
    task_service = TaskService(db)
    task = await _get_owned_task(task_service, task_id, current_user.user_id)

    return TaskResponse(success=True, data=task.to_api_dict())


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_task(
    task_id: uuid.UUID,
    task_data: TaskUpdate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Update a task. Only supplied fields change.
    """
    task_service = TaskService(db)
    task = await _get_owned_task(task_service, task_id, current_user.user_id)

    updated_task = await task_service.update_task(task, task_data)

    return TaskResponse(
        success=True,
        data=updated_task.to_api_dict(),
        message="Task updated successfully",
    )


@router.delete(
    "/{task_id}/hard",
    response_model=DeleteTaskResponse,
    responses={404: {"model": ErrorResponse}},
)
async def hard_delete_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Permanently delete a task. This cannot be undone.
    """
    task_service = TaskService(db)
    task = await _get_owned_task(task_service, task_id, current_user.user_id)

    summary = await task_service.hard_delete_task(task)
    logger.info("User %s permanently deleted task %s", current_user.user_id, task_id)

    return DeleteTaskResponse(
        success=True,
        message="Task permanently deleted",
        data=summary,
    )


@router.delete(
    "/{task_id}",
    response_model=DeleteTaskResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    hard: bool = Query(default=False, description="Delete permanently instead of archiving"),
):
    """
    Archive a task (soft delete), or remove it permanently with ``hard=true``.
    """
    task_service = TaskService(db)
    task = await _get_owned_task(task_service, task_id, current_user.user_id)

    if hard:
        summary = await task_service.hard_delete_task(task)
        return DeleteTaskResponse(
            success=True,
            message="Task permanently deleted",
            data=summary,
        )

    try:
        archived_task = await task_service.archive_task(task)
    except TaskAlreadyArchivedError:
        raise BadRequestError(
            code=ErrorCodes.TASK_ALREADY_ARCHIVED,
            message="Task is already archived",
        )

    return DeleteTaskResponse(
        success=True,
        message="Task archived",
        data=archived_task.to_api_dict(),
    )


@router.post(
    "/{task_id}/restore",
    response_model=TaskResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def restore_task(
    task_id: uuid.UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Restore an archived task.
    """
    task_service = TaskService(db)
    task = await _get_owned_task(task_service, task_id, current_user.user_id)

    try:
        restored = await task_service.restore_task(task)
    except TaskNotArchivedError:
        raise BadRequestError(
            code=ErrorCodes.TASK_NOT_ARCHIVED,
            message="Task is not archived",
        )

    return TaskResponse(
        success=True,
        data=restored.to_api_dict(),
        message="Task restored",
    )
