from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.engine import Engine

from charity_hub.db.readers.notifications import list_notifications_by_status, list_user_notifications
from charity_hub.db.writers.notifications import mark_notification_read
from charity_hub.dependencies import get_current_user, get_db_engine, require_admin
from charity_hub.errors import NotFoundError
from charity_hub.services.notifications import retry_pending_notifications
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()

# Context can hold one-time credentials and is never returned in listings
HIDDEN_FIELDS = ("context",)


@router.get("/notifications")
def get_my_notifications(
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_user_notifications(conn, user["id"])
    unread = sum(1 for r in rows if r["read_at"] is None)
    return {
        "notifications": [serialize_row(r, exclude=HIDDEN_FIELDS) for r in rows],
        "total": len(rows),
        "unread": unread,
    }


@router.post("/notifications/{notification_id}/read")
def read_notification(
    notification_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    with db_engine.begin() as conn:
        if not mark_notification_read(conn, notification_id, user["id"]):
            raise NotFoundError("Notification not found")
    return {"message": "Notification marked as read"}


@router.get("/admin/notifications")
def get_notifications(
    status_filter: Optional[str] = Query(None, alias="status", description="pending, sent or failed"),
    limit: int = Query(100, ge=1, le=1000),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_notifications_by_status(conn, status=status_filter, limit=limit)
    return {
        "notifications": [serialize_row(r, exclude=HIDDEN_FIELDS) for r in rows],
        "total": len(rows),
    }


@router.post("/admin/notifications/retry")
def retry_notifications(
    limit: int = Query(100, ge=1, le=1000),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Attempt delivery of every outbox row still pending.

    Returns:
        dict: Counts of rows now sent, still pending and failed
    """
    try:
        summary = retry_pending_notifications(db_engine, limit=limit)
    except Exception as e:
        logger.exception("notification_retry_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"message": "Notification retry completed", "results": summary}
