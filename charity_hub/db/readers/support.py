from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from charity_hub.models.support import HelpRequest, SupportTicket

tickets = SupportTicket.__table__
help_requests = HelpRequest.__table__


def get_ticket(conn: Connection, ticket_id: int) -> Optional[dict[str, Any]]:
    row = conn.execute(select(tickets).where(tickets.c.id == ticket_id)).mappings().fetchone()
    return dict(row) if row else None


def list_tickets(
    conn: Connection, requester_id: Optional[int] = None, status: Optional[str] = None
) -> list[dict[str, Any]]:
    """
    List support tickets, newest first.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        requester_id (Optional[int]): Only tickets raised by this user
        status (Optional[str]): Only tickets in this status

    Returns:
        list[dict[str, Any]]: Ticket rows
    """
    stmt = select(tickets).order_by(tickets.c.id.desc())
    if requester_id is not None:
        stmt = stmt.where(tickets.c.requester_id == requester_id)
    if status:
        stmt = stmt.where(tickets.c.status == status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_open_tickets(conn: Connection) -> int:
    stmt = select(func.count()).where(tickets.c.status.in_(("open", "in_progress")))
    return int(conn.execute(stmt).scalar_one())


def get_help_request(conn: Connection, request_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(help_requests).where(help_requests.c.id == request_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_help_requests(
    conn: Connection, visitor_id: Optional[int] = None, status: Optional[str] = None
) -> list[dict[str, Any]]:
    stmt = select(help_requests).order_by(help_requests.c.id.desc())
    if visitor_id is not None:
        stmt = stmt.where(help_requests.c.visitor_id == visitor_id)
    if status:
        stmt = stmt.where(help_requests.c.status == status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_help_requests(conn: Connection, status: str) -> int:
    stmt = select(func.count()).where(help_requests.c.status == status)
    return int(conn.execute(stmt).scalar_one())
