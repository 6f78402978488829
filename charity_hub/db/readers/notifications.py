from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from charity_hub.models.notifications import NOTIFICATION_PENDING, Notification

notifications = Notification.__table__


def get_notification(conn: Connection, notification_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(notifications).where(notifications.c.id == notification_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_user_notifications(conn: Connection, user_id: int) -> list[dict[str, Any]]:
    """List a user's notifications, newest first."""
    stmt = (
        select(notifications)
        .where(notifications.c.user_id == user_id)
        .order_by(notifications.c.id.desc())
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_notifications_by_status(
    conn: Connection, status: Optional[str] = None, limit: int = 100
) -> list[dict[str, Any]]:
    stmt = select(notifications).order_by(notifications.c.id.desc()).limit(limit)
    if status:
        stmt = stmt.where(notifications.c.status == status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_pending_notification_ids(conn: Connection, limit: int = 100) -> list[int]:
    """IDs of outbox rows still waiting for delivery, oldest first."""
    stmt = (
        select(notifications.c.id)
        .where(notifications.c.status == NOTIFICATION_PENDING)
        .order_by(notifications.c.id)
        .limit(limit)
    )
    return [row[0] for row in conn.execute(stmt)]


def count_notifications(conn: Connection, status: str) -> int:
    stmt = select(func.count()).where(notifications.c.status == status)
    return int(conn.execute(stmt).scalar_one())
