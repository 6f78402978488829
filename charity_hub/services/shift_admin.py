"""
Shift administration: creation rules, capacity reporting, time slots and
closing out assignments.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from charity_hub.db.readers.shifts import get_assignment, get_shift, list_shift_assignments
from charity_hub.db.writers.shifts import (
    insert_shift,
    update_assignment,
    update_shift,
)
from charity_hub.db.writers.users import add_volunteer_hours
from charity_hub.errors import ConflictError, InvalidInputError, NotFoundError
from charity_hub.models.shifts import (
    ACTIVE_ASSIGNMENT_STATUSES,
    ASSIGNMENT_COMPLETED,
    ASSIGNMENT_NO_SHOW,
    SHIFT_FIXED,
    SHIFT_FLEXIBLE,
    SHIFT_OPEN,
)
from charity_hub.schemas.shifts import (
    FlexibleShiftCreatePayload,
    ShiftCreatePayload,
    ShiftUpdatePayload,
)
from charity_hub.utils.datetime import format_clock, hours_between, parse_clock, parse_day, utc_now
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)

MIN_SHIFT_HOURS = 0.5
MAX_SHIFT_HOURS = 12
MAX_VOLUNTEERS_PER_SHIFT = 50
SLOT_INTERVAL_RANGE = (15, 60)


def _parse_window(day: str, start: str, end: str, today: date) -> tuple[date, time, time]:
    try:
        shift_day = parse_day(day)
    except ValueError:
        raise InvalidInputError("invalid date format, use YYYY-MM-DD")
    if shift_day < today:
        raise InvalidInputError("Cannot create shifts for past dates")

    try:
        start_time = parse_clock(start)
    except ValueError:
        raise InvalidInputError("invalid start time format, use HH:MM")
    try:
        end_time = parse_clock(end)
    except ValueError:
        raise InvalidInputError("invalid end time format, use HH:MM")

    if end_time <= start_time:
        raise InvalidInputError("End time must be after start time")
    return shift_day, start_time, end_time


def build_fixed_shift(payload: ShiftCreatePayload, today: Optional[date] = None) -> dict[str, Any]:
    """
    Validate a fixed or open shift request and build its row.

    Shift length must be between 30 minutes and 12 hours. ``max_volunteers``
    is clamped to 1..50 and any type other than ``open`` becomes ``fixed``.

    Raises:
        InvalidInputError: On a malformed or out-of-range date, time or length
    """
    today = today or utc_now().date()
    shift_day, start_time, end_time = _parse_window(
        payload.date, payload.start_time, payload.end_time, today
    )

    length = hours_between(start_time, end_time)
    if length < MIN_SHIFT_HOURS:
        raise InvalidInputError("Shift must be at least 30 minutes long")
    if length > MAX_SHIFT_HOURS:
        raise InvalidInputError(f"Shift cannot be longer than {MAX_SHIFT_HOURS} hours")

    return {
        "date": shift_day,
        "start_time": start_time,
        "end_time": end_time,
        "location": payload.location.strip(),
        "description": payload.description.strip(),
        "role": payload.role,
        "required_skills": payload.required_skills,
        "max_volunteers": min(max(payload.max_volunteers, 1), MAX_VOLUNTEERS_PER_SHIFT),
        "type": SHIFT_OPEN if payload.type == SHIFT_OPEN else SHIFT_FIXED,
    }


def build_flexible_shift(
    payload: FlexibleShiftCreatePayload, today: Optional[date] = None
) -> dict[str, Any]:
    """
    Validate a flexible shift request and build its row.

    Raises:
        InvalidInputError: On bad times, inconsistent hour limits, a window
            shorter than the minimum commitment, or an interval outside 15..60
    """
    today = today or utc_now().date()
    if payload.maximum_hours < payload.minimum_hours:
        raise InvalidInputError("minimum hours cannot be greater than maximum hours")

    shift_day, start_time, end_time = _parse_window(
        payload.date, payload.start_time, payload.end_time, today
    )
    if hours_between(start_time, end_time) < payload.minimum_hours:
        raise InvalidInputError("Shift duration is less than minimum hours requirement")

    low, high = SLOT_INTERVAL_RANGE
    if not low <= payload.time_slot_interval <= high:
        raise InvalidInputError(f"time slot interval must be between {low} and {high} minutes")

    return {
        "date": shift_day,
        "start_time": start_time,
        "end_time": end_time,
        "location": payload.location.strip(),
        "description": payload.description.strip(),
        "role": payload.role,
        "required_skills": payload.required_skills,
        "max_volunteers": payload.flexible_slots,
        "type": SHIFT_FLEXIBLE,
        "flexible_slots": payload.flexible_slots,
        "flexible_slots_used": 0,
        "minimum_hours": payload.minimum_hours,
        "maximum_hours": payload.maximum_hours,
        "time_slot_interval": payload.time_slot_interval,
        "break_duration": payload.break_duration,
        "priority": payload.priority or "normal",
        "tags": ",".join(tag.strip() for tag in payload.tags if tag.strip()) or None,
        "equipment": payload.equipment,
        "accessibility_notes": payload.accessibility_notes,
    }


def create_shift(conn: Connection, values: dict[str, Any]) -> dict[str, Any]:
    shift_id = insert_shift(conn, values)
    shift = get_shift(conn, shift_id)
    if shift is None:
        raise NotFoundError("shift not found")
    return shift


def apply_shift_update(
    conn: Connection, shift: dict[str, Any], payload: ShiftUpdatePayload
) -> dict[str, Any]:
    """
    Apply a partial update, re-checking that the window stays valid.

    Raises:
        InvalidInputError: On malformed values or an end before the start
    """
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    values: dict[str, Any] = {}

    try:
        if "date" in changes:
            values["date"] = parse_day(changes.pop("date"))
        if "start_time" in changes:
            values["start_time"] = parse_clock(changes.pop("start_time"))
        if "end_time" in changes:
            values["end_time"] = parse_clock(changes.pop("end_time"))
    except ValueError as e:
        raise InvalidInputError(f"invalid date or time: {e}")

    start_time = values.get("start_time", shift["start_time"])
    end_time = values.get("end_time", shift["end_time"])
    if end_time <= start_time:
        raise InvalidInputError("End time must be after start time")

    if "max_volunteers" in changes:
        changes["max_volunteers"] = min(max(changes["max_volunteers"], 1), MAX_VOLUNTEERS_PER_SHIFT)

    minimum = changes.get("minimum_hours", shift["minimum_hours"])
    maximum = changes.get("maximum_hours", shift["maximum_hours"])
    if minimum is not None and maximum is not None and maximum < minimum:
        raise InvalidInputError("minimum hours cannot be greater than maximum hours")

    values.update(changes)
    if values:
        update_shift(conn, shift["id"], values)
    updated = get_shift(conn, shift["id"])
    if updated is None:
        raise NotFoundError("shift not found")
    return updated


def _require_flexible(conn: Connection, shift_id: int) -> dict[str, Any]:
    shift = get_shift(conn, shift_id)
    if shift is None:
        raise NotFoundError("shift not found")
    if shift["type"] != SHIFT_FLEXIBLE:
        raise InvalidInputError("not a flexible shift")
    return shift


def capacity_report(conn: Connection, shift_id: int) -> dict[str, Any]:
    """
    Current headcount of a flexible shift.

    Raises:
        NotFoundError: Unknown shift
        InvalidInputError: Shift is not flexible
    """
    shift = _require_flexible(conn, shift_id)
    current = list_shift_assignments(conn, shift_id)
    total = shift["flexible_slots"]
    used = shift["flexible_slots_used"]
    return {
        "shift_id": shift_id,
        "total_flexible_slots": total,
        "used_flexible_slots": used,
        "available_slots": max(0, total - used),
        "capacity_percentage": round(used / total * 100, 1) if total else 0.0,
        "minimum_hours": shift["minimum_hours"],
        "maximum_hours": shift["maximum_hours"],
        "current_assignments": [serialize_row(a) for a in current],
    }


def time_slots(conn: Connection, shift_id: int) -> dict[str, Any]:
    """
    Split a flexible shift window into slots of ``time_slot_interval`` minutes.

    A slot is unavailable when it overlaps any active booked range.

    Raises:
        NotFoundError: Unknown shift
        InvalidInputError: Shift is not flexible
    """
    shift = _require_flexible(conn, shift_id)
    booked = [
        a
        for a in list_shift_assignments(conn, shift_id)
        if a["custom_start_time"] is not None and a["custom_end_time"] is not None
    ]

    anchor = shift["date"]
    window_end = datetime.combine(anchor, shift["end_time"])
    step = timedelta(minutes=shift["time_slot_interval"] or 30)
    current = datetime.combine(anchor, shift["start_time"])

    slots: list[dict[str, Any]] = []
    while current < window_end:
        slot_end = min(current + step, window_end)
        slot: dict[str, Any] = {
            "start_time": format_clock(current.time()),
            "end_time": format_clock(slot_end.time()),
            "available": True,
        }
        for a in booked:
            booked_start = datetime.combine(anchor, a["custom_start_time"])
            booked_end = datetime.combine(anchor, a["custom_end_time"])
            if current < booked_end and booked_start < slot_end:
                slot["available"] = False
                slot["assigned_to"] = a["user_id"]
                break
        slots.append(slot)
        current = slot_end

    return {"shift_id": shift_id, "time_slots": slots, "interval": shift["time_slot_interval"]}


def update_capacity(conn: Connection, shift_id: int, flexible_slots: int) -> dict[str, Any]:
    """
    Change the number of places on a flexible shift.

    Raises:
        InvalidInputError: Shift is not flexible, or the new capacity is below slots in use
    """
    shift = _require_flexible(conn, shift_id)
    if flexible_slots < shift["flexible_slots_used"]:
        raise InvalidInputError(
            f"cannot reduce capacity below current assignments ({shift['flexible_slots_used']})"
        )
    update_shift(conn, shift_id, {"flexible_slots": flexible_slots, "max_volunteers": flexible_slots})
    logger.info("shift_capacity_updated", shift_id=shift_id, flexible_slots=flexible_slots)
    return {"message": "Capacity updated successfully", "new_capacity": flexible_slots}


def _active_assignment_or_error(conn: Connection, assignment_id: int) -> dict[str, Any]:
    assignment = get_assignment(conn, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    if assignment["status"] not in ACTIVE_ASSIGNMENT_STATUSES:
        raise ConflictError(f"Assignment is already {assignment['status']}")
    return assignment


def complete_assignment(
    engine: Engine, assignment_id: int, hours_logged: Optional[float] = None
) -> dict[str, Any]:
    """
    Mark an active assignment Completed and credit the volunteer's hours.

    Hours default to the booked custom range, or the whole shift.

    Raises:
        NotFoundError: Unknown assignment
        ConflictError: Assignment is not active
    """
    with engine.begin() as conn:
        assignment = _active_assignment_or_error(conn, assignment_id)
        if hours_logged is None:
            if assignment["custom_start_time"] is not None and assignment["custom_end_time"] is not None:
                hours_logged = hours_between(
                    assignment["custom_start_time"], assignment["custom_end_time"]
                )
            else:
                hours_logged = hours_between(
                    assignment["shift_start_time"], assignment["shift_end_time"]
                )

        update_assignment(
            conn,
            assignment_id,
            {"status": ASSIGNMENT_COMPLETED, "hours_logged": hours_logged, "completed_at": utc_now()},
        )
        add_volunteer_hours(conn, assignment["user_id"], hours_logged)

    logger.info(
        "shift_assignment_completed",
        assignment_id=assignment_id,
        user_id=assignment["user_id"],
        hours_logged=hours_logged,
    )
    return {"message": "Assignment completed", "assignment_id": assignment_id, "hours_logged": hours_logged}


def record_no_show(
    engine: Engine, assignment_id: int, recorded_by: int, reason: Optional[str] = None
) -> dict[str, Any]:
    """
    Mark an active assignment NoShow.

    Raises:
        NotFoundError: Unknown assignment
        ConflictError: Assignment is not active
    """
    with engine.begin() as conn:
        assignment = _active_assignment_or_error(conn, assignment_id)
        update_assignment(
            conn,
            assignment_id,
            {
                "status": ASSIGNMENT_NO_SHOW,
                "no_show_reason": reason,
                "no_show_recorded_by": recorded_by,
            },
        )

    logger.info("shift_no_show_recorded", assignment_id=assignment_id, user_id=assignment["user_id"])
    return {"message": "No-show recorded", "assignment_id": assignment_id}
