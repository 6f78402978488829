from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from charity_hub.models.volunteers import VolunteerApplication

applications = VolunteerApplication.__table__


def get_application(conn: Connection, application_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch a volunteer application by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        application_id (int): Application ID

    Returns:
        Optional[dict[str, Any]]: Application row, or None if not found
    """
    row = (
        conn.execute(select(applications).where(applications.c.id == application_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def application_email_exists(conn: Connection, email: str) -> bool:
    result = conn.execute(
        select(applications.c.id).where(
            func.lower(applications.c.email) == email.strip().lower()
        )
    )
    return result.first() is not None


def list_applications(conn: Connection, status: Optional[str] = None) -> list[dict[str, Any]]:
    """List applications, newest first, optionally filtered by status."""
    stmt = select(applications).order_by(applications.c.created_at.desc(), applications.c.id.desc())
    if status:
        stmt = stmt.where(applications.c.status == status)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_applications(conn: Connection, status: str) -> int:
    stmt = select(func.count()).where(applications.c.status == status)
    return int(conn.execute(stmt).scalar_one())
