from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.engine import Connection

from charity_hub.models.messages import Message

messages = Message.__table__


def get_message(conn: Connection, message_id: int) -> Optional[dict[str, Any]]:
    row = conn.execute(select(messages).where(messages.c.id == message_id)).mappings().fetchone()
    return dict(row) if row else None


def list_user_messages(conn: Connection, user_id: int) -> list[dict[str, Any]]:
    """List messages sent or received by a user, newest first."""
    stmt = (
        select(messages)
        .where(or_(messages.c.sender_id == user_id, messages.c.recipient_id == user_id))
        .order_by(messages.c.id.desc())
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]
