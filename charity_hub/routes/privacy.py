from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.engine import Engine

from charity_hub.db.readers.privacy import get_deletion_request, get_export_request
from charity_hub.db.writers.privacy import confirm_deletion_request, insert_deletion_request
from charity_hub.dependencies import (
    get_current_user,
    get_db_engine,
    get_export_storage,
    require_admin,
)
from charity_hub.errors import InvalidInputError, NotFoundError
from charity_hub.routes._helpers import queue_notifications, require_owner_or_admin
from charity_hub.schemas.privacy import DeletionRequestPayload
from charity_hub.services.privacy import export_user_data
from charity_hub.services.storage import LocalFileStorage
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()


def _export_or_404(db_engine: Engine, request_id: int, user: dict[str, Any]) -> dict[str, Any]:
    with db_engine.connect() as conn:
        export = get_export_request(conn, request_id)
    if export is None:
        raise NotFoundError("Export request not found")
    require_owner_or_admin(user, export["user_id"])
    return export


@router.post("/privacy/export-request", status_code=status.HTTP_202_ACCEPTED)
def request_data_export(
    background_tasks: BackgroundTasks,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
    storage: LocalFileStorage = Depends(get_export_storage),
) -> dict[str, Any]:
    """
    Generate a JSON export of the current user's data.

    Returns:
        dict: Request id and status; download from ``/privacy/export-request/{id}/download``
    """
    try:
        export = export_user_data(db_engine, storage, user["id"])
    except Exception as e:
        logger.exception("data_export_request_failed", user_id=user["id"], error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    queue_notifications(background_tasks, db_engine, export.notification_ids)
    return {"message": "Data export ready", "request_id": export.request_id, "status": "ready"}


@router.get("/privacy/export-request/{request_id}")
def get_export_status(
    request_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    export = _export_or_404(db_engine, request_id, user)
    return {"export_request": serialize_row(export, exclude=("file_path",))}


@router.get("/privacy/export-request/{request_id}/download")
def download_export(
    request_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
    storage: LocalFileStorage = Depends(get_export_storage),
) -> FileResponse:
    export = _export_or_404(db_engine, request_id, user)
    if export["status"] != "ready" or not export["file_path"]:
        raise InvalidInputError("Export is not ready")

    try:
        path = storage.path_for(export["file_path"])
    except FileNotFoundError:
        logger.error("export_file_missing", request_id=request_id)
        raise NotFoundError("Export file not found")

    return FileResponse(path, media_type="application/json", filename=path.name)


@router.post("/privacy/deletion-request", status_code=status.HTTP_202_ACCEPTED)
def request_account_deletion(
    payload: Optional[DeletionRequestPayload] = None,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    reason = payload.reason if payload else None
    try:
        with db_engine.begin() as conn:
            request_id = insert_deletion_request(conn, user["id"], reason)
    except Exception as e:
        logger.exception("deletion_request_failed", user_id=user["id"], error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("account_deletion_requested", user_id=user["id"], request_id=request_id)
    return {
        "message": "Deletion request received and awaiting confirmation",
        "request_id": request_id,
        "status": "pending",
    }


@router.post("/admin/privacy/deletion-requests/{request_id}/confirm")
def confirm_account_deletion(
    request_id: int,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Confirm a pending deletion request. Erasure itself is carried out separately.
    """
    with db_engine.begin() as conn:
        deletion = get_deletion_request(conn, request_id)
        if deletion is None:
            raise NotFoundError("Deletion request not found")
        if deletion["status"] != "pending":
            raise InvalidInputError("Deletion request is not pending")
        confirm_deletion_request(conn, request_id, admin["id"])

    logger.info("account_deletion_confirmed", request_id=request_id, admin_id=admin["id"])
    return {"message": "Deletion request confirmed", "request_id": request_id, "status": "confirmed"}
