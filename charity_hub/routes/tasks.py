from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from charity_hub.db.readers.tasks import get_task, list_user_tasks
from charity_hub.db.readers.users import get_user_by_id
from charity_hub.db.writers.tasks import insert_task, update_task
from charity_hub.dependencies import get_db_engine, require_admin, require_roles
from charity_hub.errors import AppError, InvalidInputError, NotFoundError
from charity_hub.models.users import ROLE_VOLUNTEER
from charity_hub.schemas.tasks import TaskCreatePayload, TaskUpdatePayload
from charity_hub.utils.datetime import utc_now
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/admin/tasks", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Assign a task to a volunteer.

    Returns:
        dict: Confirmation message and the new task
    """
    try:
        with db_engine.begin() as conn:
            assignee = get_user_by_id(conn, payload.assigned_user_id)
            if assignee is None or assignee["role"] != ROLE_VOLUNTEER:
                raise InvalidInputError("assigned user must be a volunteer")

            task_id = insert_task(
                conn, {**payload.model_dump(), "status": "pending", "created_by_id": admin["id"]}
            )
            task = get_task(conn, task_id)

        logger.info("task_created", task_id=task_id, assigned_user_id=payload.assigned_user_id)
        return {"message": "Task created successfully", "task": serialize_row(task or {})}

    except AppError:
        raise
    except Exception as e:
        logger.exception("task_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/volunteer/tasks")
def get_my_tasks(
    volunteer: dict[str, Any] = Depends(require_roles(ROLE_VOLUNTEER)),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_user_tasks(conn, volunteer["id"])
    return {"tasks": [serialize_row(r) for r in rows], "total": len(rows)}


@router.patch("/volunteer/tasks/{task_id}")
def update_my_task(
    task_id: int,
    payload: TaskUpdatePayload,
    volunteer: dict[str, Any] = Depends(require_roles(ROLE_VOLUNTEER)),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Progress one of the volunteer's own tasks. Completing it stamps ``completed_at``.
    """
    try:
        with db_engine.begin() as conn:
            task = get_task(conn, task_id)
            if task is None or task["assigned_user_id"] != volunteer["id"]:
                raise NotFoundError("Task not found")

            update_data = payload.model_dump(exclude_none=True)
            if not update_data:
                return {"message": "No fields to update", "task": serialize_row(task)}

            if update_data.get("status") == "completed" and task["status"] != "completed":
                update_data["completed_at"] = utc_now()

            update_task(conn, task_id, update_data)
            task = get_task(conn, task_id)

        logger.info("task_updated", task_id=task_id, status=update_data.get("status"))
        return {"message": "Task updated successfully", "task": serialize_row(task or {})}

    except AppError:
        raise
    except Exception as e:
        logger.exception("task_update_failed", task_id=task_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
