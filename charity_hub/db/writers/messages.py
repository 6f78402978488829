from __future__ import annotations

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.messages import Message
from charity_hub.utils.datetime import utc_now

messages = Message.__table__


def insert_message(conn: Connection, sender_id: int, recipient_id: int, content: str) -> int:
    result = conn.execute(
        insert(messages).values(
            sender_id=sender_id, recipient_id=recipient_id, content=content, created_at=utc_now()
        )
    )
    return int(result.inserted_primary_key[0])


def mark_message_read(conn: Connection, message_id: int) -> None:
    conn.execute(update(messages).where(messages.c.id == message_id).values(read_at=utc_now()))
