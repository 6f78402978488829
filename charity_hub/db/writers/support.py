from __future__ import annotations

from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.support import HelpRequest, SupportTicket
from charity_hub.utils.datetime import utc_now

tickets = SupportTicket.__table__
help_requests = HelpRequest.__table__


def insert_ticket(conn: Connection, values: dict[str, Any]) -> int:
    now = utc_now()
    result = conn.execute(insert(tickets).values({**values, "created_at": now, "updated_at": now}))
    return int(result.inserted_primary_key[0])


def update_ticket(conn: Connection, ticket_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(tickets).where(tickets.c.id == ticket_id).values({**values, "updated_at": utc_now()})
    )


def insert_help_request(conn: Connection, values: dict[str, Any]) -> int:
    now = utc_now()
    result = conn.execute(
        insert(help_requests).values({**values, "created_at": now, "updated_at": now})
    )
    return int(result.inserted_primary_key[0])


def update_help_request(conn: Connection, request_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(help_requests)
        .where(help_requests.c.id == request_id)
        .values({**values, "updated_at": utc_now()})
    )
