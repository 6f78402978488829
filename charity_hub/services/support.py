"""
Support tickets and visitor help requests.

Tickets are numbered ``TKT-YYYYMMDD-XXXXXX`` and help requests
``HR-YYYYMMDD-XXXX``, both with a random uppercase hex suffix.
"""

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from charity_hub.db.readers.support import get_help_request, get_ticket
from charity_hub.db.readers.users import get_user_by_id
from charity_hub.db.writers.support import (
    insert_help_request,
    insert_ticket,
    update_help_request,
    update_ticket,
)
from charity_hub.errors import InvalidInputError, NotFoundError
from charity_hub.schemas.support import (
    HelpRequestPayload,
    HelpRequestUpdatePayload,
    TicketCreatePayload,
    TicketUpdatePayload,
)
from charity_hub.services.notifications import NotificationData
from charity_hub.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def generate_ticket_number(now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    return f"TKT-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def generate_help_reference(now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    return f"HR-{now:%Y%m%d}-{secrets.token_hex(2).upper()}"


def open_ticket(
    conn: Connection, requester: dict[str, Any], payload: TicketCreatePayload
) -> tuple[dict[str, Any], NotificationData]:
    """
    Raise a ticket for ``requester``.

    Returns:
        tuple: The ticket row and the acknowledgement notification
    """
    ticket_id = insert_ticket(
        conn,
        {
            "ticket_number": generate_ticket_number(),
            "subject": payload.subject.strip(),
            "description": payload.description,
            "category": payload.category,
            "priority": payload.priority,
            "status": "open",
            "requester_id": requester["id"],
        },
    )
    ticket = get_ticket(conn, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket not found")
    logger.info("support_ticket_created", ticket_id=ticket_id, ticket_number=ticket["ticket_number"])

    notification = NotificationData(
        to=requester["email"],
        subject=f"Support ticket {ticket['ticket_number']} received",
        template="ticket_created",
        user_id=requester["id"],
        context={
            "first_name": requester["first_name"],
            "ticket_number": ticket["ticket_number"],
            "subject": ticket["subject"],
        },
    )
    return ticket, notification


def change_ticket(
    conn: Connection, ticket_id: int, payload: TicketUpdatePayload
) -> dict[str, Any]:
    """
    Apply an admin's status, priority or assignee change.

    Raises:
        NotFoundError: Unknown ticket or assignee
        InvalidInputError: Nothing to change
    """
    ticket = get_ticket(conn, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket not found")

    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise InvalidInputError("No fields to update")
    if "assignee_id" in changes and get_user_by_id(conn, changes["assignee_id"]) is None:
        raise NotFoundError("Assignee not found")

    if changes.get("status") == "resolved" and ticket["status"] != "resolved":
        changes["resolved_at"] = utc_now()

    update_ticket(conn, ticket_id, changes)
    logger.info("support_ticket_updated", ticket_id=ticket_id, **changes)
    updated = get_ticket(conn, ticket_id)
    if updated is None:
        raise NotFoundError("Ticket not found")
    return updated


def open_help_request(
    conn: Connection, visitor_id: int, payload: HelpRequestPayload
) -> dict[str, Any]:
    request_id = insert_help_request(
        conn,
        {
            "reference": generate_help_reference(),
            "visitor_id": visitor_id,
            "category": payload.category,
            "details": payload.details,
            "visit_date": payload.visit_date,
            "status": "pending",
        },
    )
    help_request = get_help_request(conn, request_id)
    if help_request is None:
        raise NotFoundError("Help request not found")
    logger.info("help_request_created", request_id=request_id, reference=help_request["reference"])
    return help_request


def change_help_request(
    conn: Connection, request_id: int, payload: HelpRequestUpdatePayload
) -> dict[str, Any]:
    """
    Raises:
        NotFoundError: Unknown help request
    """
    if get_help_request(conn, request_id) is None:
        raise NotFoundError("Help request not found")

    update_help_request(conn, request_id, payload.model_dump(exclude_none=True))
    logger.info("help_request_updated", request_id=request_id, status=payload.status)
    updated = get_help_request(conn, request_id)
    if updated is None:
        raise NotFoundError("Help request not found")
    return updated
