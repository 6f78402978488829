from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.privacy import AccountDeletionRequest, DataExportRequest
from charity_hub.utils.datetime import utc_now

export_requests = DataExportRequest.__table__
deletion_requests = AccountDeletionRequest.__table__


def insert_export_request(conn: Connection, user_id: int) -> int:
    result = conn.execute(
        insert(export_requests).values(user_id=user_id, status="pending", requested_at=utc_now())
    )
    return int(result.inserted_primary_key[0])


def update_export_request(conn: Connection, request_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(export_requests).where(export_requests.c.id == request_id).values(**values)
    )


def insert_deletion_request(conn: Connection, user_id: int, reason: Optional[str]) -> int:
    result = conn.execute(
        insert(deletion_requests).values(
            user_id=user_id, reason=reason, status="pending", requested_at=utc_now()
        )
    )
    return int(result.inserted_primary_key[0])


def confirm_deletion_request(conn: Connection, request_id: int, confirmed_by: int) -> None:
    conn.execute(
        update(deletion_requests)
        .where(deletion_requests.c.id == request_id)
        .values(status="confirmed", confirmed_at=utc_now(), confirmed_by=confirmed_by)
    )
