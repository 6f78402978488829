from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from charity_hub.db.readers.messages import get_message, list_user_messages
from charity_hub.db.readers.users import get_user_by_id
from charity_hub.db.writers.messages import insert_message, mark_message_read
from charity_hub.dependencies import get_current_user, get_db_engine
from charity_hub.errors import AppError, NotFoundError, PermissionDeniedError
from charity_hub.schemas.messages import MessageCreatePayload
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreatePayload,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with db_engine.begin() as conn:
            if get_user_by_id(conn, payload.recipient_id) is None:
                raise NotFoundError("Recipient not found")
            message_id = insert_message(conn, user["id"], payload.recipient_id, payload.content)

        logger.info("message_sent", message_id=message_id, recipient_id=payload.recipient_id)
        return {"message": "Message sent", "message_id": message_id}

    except AppError:
        raise
    except Exception as e:
        logger.exception("message_send_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/messages")
def get_messages(
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_user_messages(conn, user["id"])
    unread = sum(1 for r in rows if r["recipient_id"] == user["id"] and r["read_at"] is None)
    return {"messages": [serialize_row(r) for r in rows], "total": len(rows), "unread": unread}


@router.post("/messages/{message_id}/read")
def read_message(
    message_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    with db_engine.begin() as conn:
        message = get_message(conn, message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message["recipient_id"] != user["id"]:
            raise PermissionDeniedError("Only the recipient can mark a message read")
        if message["read_at"] is None:
            mark_message_read(conn, message_id)
    return {"message": "Message marked as read"}
