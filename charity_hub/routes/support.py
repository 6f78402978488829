from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.engine import Engine

from charity_hub.db.readers.support import get_ticket, list_help_requests, list_tickets
from charity_hub.dependencies import get_current_user, get_db_engine, require_admin
from charity_hub.errors import AppError, NotFoundError
from charity_hub.routes._helpers import enqueue_all, queue_notifications, require_owner_or_admin
from charity_hub.schemas.support import (
    HelpRequestPayload,
    HelpRequestUpdatePayload,
    TicketCreatePayload,
    TicketUpdatePayload,
)
from charity_hub.services.support import (
    change_help_request,
    change_ticket,
    open_help_request,
    open_ticket,
)
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/support-tickets", status_code=status.HTTP_201_CREATED)
def create_ticket(
    payload: TicketCreatePayload,
    background_tasks: BackgroundTasks,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Raise a support ticket.

    Returns:
        dict: Confirmation message, ticket id and ticket number
    """
    try:
        with db_engine.begin() as conn:
            ticket, notification = open_ticket(conn, user, payload)
            notification_ids = enqueue_all(conn, [notification])
    except AppError:
        raise
    except Exception as e:
        logger.exception("support_ticket_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    queue_notifications(background_tasks, db_engine, notification_ids)
    return {
        "message": "Support ticket created",
        "ticket_id": ticket["id"],
        "ticket_number": ticket["ticket_number"],
    }


@router.get("/support-tickets")
def get_my_tickets(
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_tickets(conn, requester_id=user["id"])
    return {"tickets": [serialize_row(r) for r in rows], "total": len(rows)}


@router.get("/support-tickets/{ticket_id}")
def get_ticket_detail(
    ticket_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        ticket = get_ticket(conn, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket not found")
    require_owner_or_admin(user, ticket["requester_id"])
    return {"ticket": serialize_row(ticket)}


@router.get("/admin/support-tickets")
def get_all_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_tickets(conn, status=status_filter)
    return {"tickets": [serialize_row(r) for r in rows], "total": len(rows)}


@router.patch("/admin/support-tickets/{ticket_id}")
def update_ticket_endpoint(
    ticket_id: int,
    payload: TicketUpdatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with db_engine.begin() as conn:
            ticket = change_ticket(conn, ticket_id, payload)
        return {"message": "Ticket updated", "ticket": serialize_row(ticket)}
    except AppError:
        raise
    except Exception as e:
        logger.exception("support_ticket_update_failed", ticket_id=ticket_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/visitor/help-requests", status_code=status.HTTP_201_CREATED)
def create_help_request(
    payload: HelpRequestPayload,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with db_engine.begin() as conn:
            help_request = open_help_request(conn, user["id"], payload)
    except Exception as e:
        logger.exception("help_request_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    return {
        "message": "Help request submitted",
        "request_id": help_request["id"],
        "reference": help_request["reference"],
    }


@router.get("/visitor/help-requests")
def get_my_help_requests(
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_help_requests(conn, visitor_id=user["id"])
    return {"help_requests": [serialize_row(r) for r in rows], "total": len(rows)}


@router.get("/admin/help-requests")
def get_all_help_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_help_requests(conn, status=status_filter)
    return {"help_requests": [serialize_row(r) for r in rows], "total": len(rows)}


@router.patch("/admin/help-requests/{request_id}")
def update_help_request_endpoint(
    request_id: int,
    payload: HelpRequestUpdatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with db_engine.begin() as conn:
            help_request = change_help_request(conn, request_id, payload)
        return {"message": "Help request updated", "help_request": serialize_row(help_request)}
    except AppError:
        raise
    except Exception as e:
        logger.exception("help_request_update_failed", request_id=request_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
