"""
Personal data export for data-subject access requests.

The export is generated synchronously into ``EXPORT_DIR`` as a single JSON
document holding the user's account, volunteer profile, shift history and
support tickets.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy.engine import Connection, Engine

from charity_hub.db.readers.shifts import list_user_assignments
from charity_hub.db.readers.support import list_tickets
from charity_hub.db.readers.users import get_user_by_id, get_volunteer_profile
from charity_hub.db.writers.privacy import insert_export_request, update_export_request
from charity_hub.services.notifications import NotificationData, enqueue_notification
from charity_hub.services.storage import LocalFileStorage
from charity_hub.utils.datetime import utc_now
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)


def collect_user_data(conn: Connection, user_id: int) -> dict[str, Any]:
    """Gather everything held about a user, minus credentials."""
    user = get_user_by_id(conn, user_id)
    profile = get_volunteer_profile(conn, user_id)
    return {
        "user": serialize_row(user, exclude=("password_hash",)) if user else None,
        "volunteer_profile": serialize_row(profile) if profile else None,
        "shift_assignments": [serialize_row(a) for a in list_user_assignments(conn, user_id)],
        "support_tickets": [serialize_row(t) for t in list_tickets(conn, requester_id=user_id)],
        "exported_at": utc_now().isoformat(),
    }


@dataclass
class ExportOutcome:
    """A finished export plus the outbox rows written when it was marked ready."""

    request_id: int
    notification_ids: list[int] = field(default_factory=list)


def export_user_data(engine: Engine, storage: LocalFileStorage, user_id: int) -> ExportOutcome:
    """
    Record an export request and write the export file.

    On failure the request is marked ``failed`` and the error is re-raised.
    The "export ready" notification is enqueued in the transaction that marks
    the request ready.

    Args:
        engine: SQLAlchemy engine
        storage: Storage rooted at the export directory
        user_id: User whose data is exported

    Returns:
        ExportOutcome: Export request id and outbox ids to deliver
    """
    with engine.begin() as conn:
        request_id = insert_export_request(conn, user_id)

    try:
        with engine.connect() as conn:
            data = collect_user_data(conn, user_id)
        file_path = storage.write_text(
            f"user_{user_id}_export_{request_id}.json", json.dumps(data, indent=2, default=str)
        )
    except Exception:
        with engine.begin() as conn:
            update_export_request(conn, request_id, {"status": "failed"})
        logger.exception("data_export_failed", user_id=user_id, request_id=request_id)
        raise

    with engine.begin() as conn:
        update_export_request(
            conn,
            request_id,
            {"status": "ready", "file_path": file_path, "completed_at": utc_now()},
        )
        notification_ids: list[int] = []
        user = get_user_by_id(conn, user_id)
        if user is not None:
            notification_ids.append(
                enqueue_notification(
                    conn,
                    NotificationData(
                        to=user["email"],
                        subject="Your data export is ready",
                        template="export_ready",
                        user_id=user_id,
                        context={"first_name": user["first_name"], "request_id": request_id},
                    ),
                )
            )
    logger.info("data_export_ready", user_id=user_id, request_id=request_id)
    return ExportOutcome(request_id=request_id, notification_ids=notification_ids)
