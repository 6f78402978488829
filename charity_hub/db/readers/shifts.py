"""
Read queries for shifts and shift assignments.

Assignment queries that feed eligibility checks and statistics join the parent
shift so callers get the shift window, date and type alongside the booking.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.engine import Connection

from charity_hub.models.shifts import (
    ACTIVE_ASSIGNMENT_STATUSES,
    SHIFT_FLEXIBLE,
    Shift,
    ShiftAssignment,
)
from charity_hub.models.users import User

shifts = Shift.__table__
assignments = ShiftAssignment.__table__
users = User.__table__

_assignment_with_shift = (
    assignments.c.id,
    assignments.c.shift_id,
    assignments.c.user_id,
    assignments.c.status,
    assignments.c.assigned_at,
    assignments.c.custom_start_time,
    assignments.c.custom_end_time,
    assignments.c.duration,
    assignments.c.cancelled_at,
    assignments.c.cancellation_reason,
    assignments.c.hours_notice,
    assignments.c.hours_logged,
    assignments.c.completed_at,
    assignments.c.no_show_reason,
    shifts.c.date.label("shift_date"),
    shifts.c.start_time.label("shift_start_time"),
    shifts.c.end_time.label("shift_end_time"),
    shifts.c.type.label("shift_type"),
    shifts.c.location,
    shifts.c.description,
    shifts.c.role,
)


def get_shift(conn: Connection, shift_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch a shift row by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        shift_id (int): Shift ID

    Returns:
        Optional[dict[str, Any]]: Shift row, or None if not found
    """
    row = conn.execute(select(shifts).where(shifts.c.id == shift_id)).mappings().fetchone()
    return dict(row) if row else None


def list_shifts(
    conn: Connection,
    day: Optional[date] = None,
    location: Optional[str] = None,
    from_day: Optional[date] = None,
) -> list[dict[str, Any]]:
    """
    List shifts ordered by date and start time.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        day (Optional[date]): Only shifts on this date
        location (Optional[str]): Only shifts at this location (exact match)
        from_day (Optional[date]): Only shifts on or after this date

    Returns:
        list[dict[str, Any]]: Shift rows
    """
    stmt = select(shifts).order_by(shifts.c.date, shifts.c.start_time, shifts.c.id)
    if day is not None:
        stmt = stmt.where(shifts.c.date == day)
    if from_day is not None:
        stmt = stmt.where(shifts.c.date >= from_day)
    if location:
        stmt = stmt.where(shifts.c.location == location)
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_open_shifts(conn: Connection, user_id: int, from_day: date) -> list[dict[str, Any]]:
    """
    List shifts from ``from_day`` onwards that still have room and that the
    volunteer has not already booked.

    A fixed or open shift has room while it has no assignee; a flexible shift
    has room while ``flexible_slots_used`` is below ``flexible_slots``.
    """
    already_booked = select(assignments.c.shift_id).where(
        assignments.c.user_id == user_id,
        assignments.c.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
    )
    has_room = or_(
        and_(shifts.c.type != SHIFT_FLEXIBLE, shifts.c.assigned_volunteer_id.is_(None)),
        and_(
            shifts.c.type == SHIFT_FLEXIBLE,
            shifts.c.flexible_slots_used < shifts.c.flexible_slots,
        ),
    )
    stmt = (
        select(shifts)
        .where(shifts.c.date >= from_day, has_room, shifts.c.id.not_in(already_booked))
        .order_by(shifts.c.date, shifts.c.start_time, shifts.c.id)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def get_assignment(conn: Connection, assignment_id: int) -> Optional[dict[str, Any]]:
    """Fetch one assignment joined with its shift."""
    stmt = (
        select(*_assignment_with_shift)
        .select_from(assignments.join(shifts, shifts.c.id == assignments.c.shift_id))
        .where(assignments.c.id == assignment_id)
    )
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_active_assignment(
    conn: Connection, shift_id: int, user_id: int
) -> Optional[dict[str, Any]]:
    """Fetch the volunteer's Confirmed/Assigned booking on a shift, if any."""
    stmt = (
        select(*_assignment_with_shift)
        .select_from(assignments.join(shifts, shifts.c.id == assignments.c.shift_id))
        .where(
            assignments.c.shift_id == shift_id,
            assignments.c.user_id == user_id,
            assignments.c.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
        )
        .order_by(assignments.c.id.desc())
    )
    row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def list_active_assignments_on_day(
    conn: Connection, user_id: int, day: date
) -> list[dict[str, Any]]:
    """
    List the volunteer's active bookings on a given date.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        user_id (int): Volunteer user ID
        day (date): Shift date

    Returns:
        list[dict[str, Any]]: Assignments joined with their shift window
    """
    stmt = (
        select(*_assignment_with_shift)
        .select_from(assignments.join(shifts, shifts.c.id == assignments.c.shift_id))
        .where(
            assignments.c.user_id == user_id,
            assignments.c.status.in_(ACTIVE_ASSIGNMENT_STATUSES),
            shifts.c.date == day,
        )
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_shift_assignments(
    conn: Connection, shift_id: int, active_only: bool = True
) -> list[dict[str, Any]]:
    """List bookings on a shift with the volunteer's name, earliest start first."""
    stmt = (
        select(
            assignments.c.id,
            assignments.c.user_id,
            assignments.c.status,
            assignments.c.custom_start_time,
            assignments.c.custom_end_time,
            assignments.c.duration,
            assignments.c.assigned_at,
            users.c.first_name,
            users.c.last_name,
        )
        .select_from(assignments.join(users, users.c.id == assignments.c.user_id))
        .where(assignments.c.shift_id == shift_id)
        .order_by(assignments.c.custom_start_time, assignments.c.id)
    )
    if active_only:
        stmt = stmt.where(assignments.c.status.in_(ACTIVE_ASSIGNMENT_STATUSES))
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_user_assignments(
    conn: Connection, user_id: int, statuses: Optional[Iterable[str]] = None
) -> list[dict[str, Any]]:
    """
    List every booking a volunteer has made, joined with the shift.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        user_id (int): Volunteer user ID
        statuses (Optional[Iterable[str]]): Restrict to these assignment statuses

    Returns:
        list[dict[str, Any]]: Assignments ordered by shift date then start time
    """
    stmt = (
        select(*_assignment_with_shift)
        .select_from(assignments.join(shifts, shifts.c.id == assignments.c.shift_id))
        .where(assignments.c.user_id == user_id)
        .order_by(shifts.c.date, shifts.c.start_time, assignments.c.id)
    )
    if statuses is not None:
        stmt = stmt.where(assignments.c.status.in_(tuple(statuses)))
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_shifts_from(conn: Connection, from_day: date) -> int:
    stmt = select(func.count()).where(shifts.c.date >= from_day)
    return int(conn.execute(stmt).scalar_one())
