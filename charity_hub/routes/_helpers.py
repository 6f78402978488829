"""
Internal helper functions shared by route handlers.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.engine import Connection, Engine

from charity_hub.db.readers.shifts import get_shift
from charity_hub.errors import NotFoundError, PermissionDeniedError
from charity_hub.models.users import ADMIN_ROLES
from charity_hub.services.notifications import (
    NotificationData,
    deliver_notifications,
    enqueue_notification,
)


def client_context(request: Request) -> tuple[Optional[str], Optional[str]]:
    """
    Client address and user agent for the audit trail.

    Args:
        request: Incoming request

    Returns:
        tuple: (ip address, user agent), either may be None
    """
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


def is_admin(user: dict[str, Any]) -> bool:
    return user["role"] in ADMIN_ROLES


def require_owner_or_admin(user: dict[str, Any], owner_id: Optional[int]) -> None:
    """
    Raise 403 unless the user owns the resource or is an admin.

    Raises:
        PermissionDeniedError: Neither owner nor admin
    """
    if owner_id != user["id"] and not is_admin(user):
        raise PermissionDeniedError("Access denied")


def shift_or_404(conn: Connection, shift_id: int) -> dict[str, Any]:
    shift = get_shift(conn, shift_id)
    if shift is None:
        raise NotFoundError("shift not found")
    return shift


def enqueue_all(conn: Connection, notifications: Iterable[Optional[NotificationData]]) -> list[int]:
    """
    Write notifications to the outbox on the caller's connection.

    Returns:
        list[int]: Outbox ids to hand to ``queue_notifications`` after commit
    """
    return [enqueue_notification(conn, data) for data in notifications if data is not None]


def queue_notifications(
    background_tasks: BackgroundTasks,
    db_engine: Engine,
    notification_ids: Iterable[int],
) -> int:
    """
    Schedule delivery of committed outbox rows after the response is sent.

    Returns:
        int: Number of notifications scheduled
    """
    ids = list(notification_ids)
    if ids:
        background_tasks.add_task(deliver_notifications, db_engine, ids)
    return len(ids)
