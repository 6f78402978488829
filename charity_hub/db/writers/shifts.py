from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import case, delete, insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.shifts import Shift, ShiftAssignment
from charity_hub.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

shifts = Shift.__table__
assignments = ShiftAssignment.__table__


def insert_shift(conn: Connection, values: dict[str, Any]) -> int:
    """
    Insert a shift.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        values (dict[str, Any]): Shift columns

    Returns:
        int: New shift id
    """
    now = utc_now()
    result = conn.execute(insert(shifts).values({**values, "created_at": now, "updated_at": now}))
    shift_id = int(result.inserted_primary_key[0])
    logger.info("shift_created", shift_id=shift_id, shift_type=values.get("type"))
    return shift_id


def update_shift(conn: Connection, shift_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(shifts).where(shifts.c.id == shift_id).values({**values, "updated_at": utc_now()})
    )


def delete_shift(conn: Connection, shift_id: int) -> None:
    """Delete a shift together with all of its bookings."""
    conn.execute(delete(assignments).where(assignments.c.shift_id == shift_id))
    conn.execute(delete(shifts).where(shifts.c.id == shift_id))
    logger.info("shift_deleted", shift_id=shift_id)


def set_shift_assignee(conn: Connection, shift_id: int, user_id: int | None) -> None:
    """Point a fixed shift at its volunteer, or clear it with ``None``."""
    update_shift(conn, shift_id, {"assigned_volunteer_id": user_id})


def adjust_flexible_slots_used(conn: Connection, shift_id: int, delta: int) -> None:
    """
    Move a flexible shift's used-slot counter by ``delta``.

    The counter never drops below zero.
    """
    moved = shifts.c.flexible_slots_used + delta
    conn.execute(
        update(shifts)
        .where(shifts.c.id == shift_id)
        .values(flexible_slots_used=case((moved < 0, 0), else_=moved), updated_at=utc_now())
    )


def insert_assignment(conn: Connection, values: dict[str, Any]) -> int:
    """
    Insert a shift assignment.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        values (dict[str, Any]): Assignment columns

    Returns:
        int: New assignment id
    """
    now = utc_now()
    result = conn.execute(
        insert(assignments).values({"assigned_at": now, **values, "created_at": now, "updated_at": now})
    )
    return int(result.inserted_primary_key[0])


def update_assignment(conn: Connection, assignment_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(assignments)
        .where(assignments.c.id == assignment_id)
        .values({**values, "updated_at": utc_now()})
    )


def delete_user_assignments(conn: Connection, user_id: int) -> int:
    """Delete every booking a user holds; returns the number of rows removed."""
    result = conn.execute(delete(assignments).where(assignments.c.user_id == user_id))
    return int(result.rowcount)
