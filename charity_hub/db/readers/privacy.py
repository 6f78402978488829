from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from charity_hub.models.privacy import AccountDeletionRequest, DataExportRequest

export_requests = DataExportRequest.__table__
deletion_requests = AccountDeletionRequest.__table__


def get_export_request(conn: Connection, request_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(export_requests).where(export_requests.c.id == request_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def get_deletion_request(conn: Connection, request_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(deletion_requests).where(deletion_requests.c.id == request_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None
