from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from charity_hub.models.audit import AuditLog

audit_logs = AuditLog.__table__


def list_audit_logs(
    conn: Connection, entity_type: Optional[str] = None, limit: int = 100
) -> list[dict[str, Any]]:
    """List audit entries, newest first."""
    stmt = select(audit_logs).order_by(audit_logs.c.id.desc()).limit(limit)
    if entity_type:
        stmt = stmt.where(audit_logs.c.entity_type == entity_type)
    return [dict(row) for row in conn.execute(stmt).mappings()]
