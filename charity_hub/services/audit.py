"""Audit trail helper for actions taken outside a larger transaction."""

from __future__ import annotations

from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine

from charity_hub.db.writers.audit import append_audit_log

logger = structlog.get_logger(__name__)


def record_audit(
    engine: Engine,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    description: Optional[str] = None,
    performed_by: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> bool:
    """
    Write an audit entry in its own transaction.

    A failure to record the entry is logged and reported through the return
    value; it never undoes the action being audited.

    Returns:
        bool: True if the entry was written
    """
    try:
        with engine.begin() as conn:
            append_audit_log(
                conn,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                description=description,
                performed_by=performed_by,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        return True
    except SQLAlchemyError as e:
        logger.error(
            "audit_log_failed",
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            error=str(e),
        )
        return False
