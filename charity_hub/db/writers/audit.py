from __future__ import annotations

from typing import Optional

from sqlalchemy import insert
from sqlalchemy.engine import Connection

from charity_hub.models.audit import AuditLog
from charity_hub.utils.datetime import utc_now

audit_logs = AuditLog.__table__


def append_audit_log(
    conn: Connection,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    description: Optional[str] = None,
    performed_by: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> int:
    """
    Append one entry to the audit trail.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        action (str): What happened, e.g. ``bulk_approve``
        entity_type (Optional[str]): Kind of entity acted on
        entity_id (Optional[int]): ID of the entity acted on
        description (Optional[str]): Human readable summary
        performed_by (Optional[str]): Acting user (email or id)
        ip_address (Optional[str]): Client address of the request
        user_agent (Optional[str]): Client user agent of the request

    Returns:
        int: New audit log id
    """
    result = conn.execute(
        insert(audit_logs).values(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            performed_by=performed_by,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=utc_now(),
        )
    )
    return int(result.inserted_primary_key[0])
