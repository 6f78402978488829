from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.volunteers import APPLICATION_PENDING, VolunteerApplication
from charity_hub.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

applications = VolunteerApplication.__table__


def insert_application(conn: Connection, values: dict[str, Any]) -> int:
    """
    Insert a pending volunteer application.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        values (dict[str, Any]): Applicant details

    Returns:
        int: New application id
    """
    now = utc_now()
    result = conn.execute(
        insert(applications).values(
            {
                **values,
                "email": values["email"].strip().lower(),
                "status": APPLICATION_PENDING,
                "created_at": now,
                "updated_at": now,
            }
        )
    )
    application_id = int(result.inserted_primary_key[0])
    logger.info("volunteer_application_submitted", application_id=application_id)
    return application_id


def update_application(conn: Connection, application_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(applications)
        .where(applications.c.id == application_id)
        .values(**values, updated_at=utc_now())
    )
