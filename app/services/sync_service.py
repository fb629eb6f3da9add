"""
Task Sync Service
=================

Replays an ordered batch of client-side task mutations against the
database.

Each operation is validated and run inside its own SAVEPOINT: a malformed
or failing operation is rolled back and reported, and the remaining
operations still apply.
Results are returned in request order, keyed by the client's op id.

Operations:
    ``create``  insert a task; the server id is returned in ``mappings``
    ``update``  apply the supplied fields to an existing task
    ``delete``  archive an existing task (idempotent)
"""

import logging
from typing import Any, Optional, Union
import uuid

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task
from app.schemas.task import SyncOperation, TaskCreate, TaskUpdate
from app.services.task_service import TaskService
from app.utils.validators import parse_uuid

logger = logging.getLogger(__name__)


class SyncOperationError(Exception):
    """An operation that cannot be applied; reported back to the client."""


def _server_id(task_payload: dict[str, Any]) -> Optional[uuid.UUID]:
    """Server id of the task an update/delete refers to."""
    return parse_uuid(task_payload.get("_id") or task_payload.get("id"))


def _client_op_id(raw: Any) -> Optional[Union[str, int]]:
    """``clientOpId`` of a raw entry, if it carries a usable one."""
    if not isinstance(raw, dict):
        return None
    value = raw.get("clientOpId")
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return value


def _validation_message(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first.get("loc", []))
    return f"{loc}: {first.get('msg')}" if loc else first.get("msg", "Invalid task")


class SyncService:
    """Service applying batched client operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tasks = TaskService(db)

    async def apply(
        self,
        user_id: uuid.UUID,
        operations: list[Any],
    ) -> dict:
        """
        Apply ``operations`` in order.

        Entries are validated one by one, so a malformed entry is reported
        as a failed operation instead of rejecting the whole batch.

        Returns:
            ``{"results": [...], "mappings": [...]}``
        """
        results: list[dict] = []
        mappings: list[dict] = []

        for raw in operations:
            op_id = _client_op_id(raw)
            try:
                operation = SyncOperation.model_validate(raw)
                async with self.db.begin_nested():
                    task = await self._apply_one(user_id, operation)
            except SyncOperationError as exc:
                results.append(self._error(op_id, str(exc)))
                continue
            except PydanticValidationError as exc:
                results.append(self._error(op_id, _validation_message(exc)))
                continue
            except SQLAlchemyError as exc:
                logger.warning(
                    "Sync op %s (%s) failed for user %s: %s",
                    op_id,
                    operation.op,
                    user_id,
                    exc,
                )
                results.append(self._error(op_id, "Database error"))
                continue

            if operation.op == "create":
                mappings.append({
                    "clientId": operation.clientId,
                    "serverId": str(task.task_id),
                })
            results.append({
                "clientOpId": op_id,
                "status": "success",
                "serverTask": task.to_api_dict(),
            })

        logger.info(
            "Sync for user %s: %d ops, %d failed",
            user_id,
            len(operations),
            sum(1 for r in results if r["status"] == "error"),
        )
        return {"results": results, "mappings": mappings}

    async def _apply_one(self, user_id: uuid.UUID, operation: SyncOperation) -> Task:
        """Execute one operation; runs inside the caller's SAVEPOINT."""
        if operation.op == "create":
            task_data = TaskCreate.model_validate(operation.task)
            return await self.tasks.create_task(user_id, task_data)

        if operation.op == "update":
            task = await self._require_task(user_id, operation.task)
            task_data = TaskUpdate.model_validate(operation.task)
            return await self.tasks.update_task(task, task_data)

        if operation.op == "delete":
            task = await self._require_task(user_id, operation.task)
            if not task.is_archived:
                task.archive()
                await self.db.flush()
            return task

        raise SyncOperationError("Unknown op")

    async def _require_task(self, user_id: uuid.UUID, task_payload: dict[str, Any]) -> Task:
        task_id = _server_id(task_payload)
        if task_id is None:
            raise SyncOperationError("Missing server id")
        task = await self.tasks.get_task_by_id(task_id, user_id)
        if task is None:
            raise SyncOperationError("Task not found")
        return task

    @staticmethod
    def _error(op_id: Optional[Union[str, int]], message: str) -> dict:
        return {
            "clientOpId": op_id,
            "status": "error",
            "message": message,
        }
