from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.notifications import NOTIFICATION_PENDING, Notification
from charity_hub.utils.datetime import utc_now

notifications = Notification.__table__


def insert_notification(
    conn: Connection,
    recipient: str,
    subject: str,
    template: str,
    context: dict[str, Any],
    user_id: Optional[int] = None,
) -> int:
    """
    Write a pending row to the notification outbox.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        recipient (str): Destination address
        subject (str): Message subject
        template (str): Template name used to render the body
        context (dict[str, Any]): Values substituted into the template
        user_id (Optional[int]): Recipient user, when the recipient has an account

    Returns:
        int: New notification id
    """
    now = utc_now()
    result = conn.execute(
        insert(notifications).values(
            user_id=user_id,
            recipient=recipient,
            subject=subject,
            template=template,
            context=context,
            status=NOTIFICATION_PENDING,
            attempts=0,
            created_at=now,
            updated_at=now,
        )
    )
    return int(result.inserted_primary_key[0])


def update_notification(conn: Connection, notification_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(notifications)
        .where(notifications.c.id == notification_id)
        .values({**values, "updated_at": utc_now()})
    )


def mark_notification_read(conn: Connection, notification_id: int, user_id: int) -> bool:
    """
    Set ``read_at`` on a notification owned by ``user_id``.

    Returns:
        bool: False if no such notification belongs to the user
    """
    result = conn.execute(
        update(notifications)
        .where(notifications.c.id == notification_id, notifications.c.user_id == user_id)
        .values(read_at=utc_now(), updated_at=utc_now())
    )
    return result.rowcount > 0
