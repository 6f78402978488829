"""
Shift eligibility checks, booking and cancellation.

A signup is checked in a fixed order and stops at the first failure:

1. ``TOO_LATE``: the shift starts less than two hours from now
2. ``SHIFT_ALREADY_ASSIGNED``: a fixed or open shift already has a volunteer
3. ``TIME_CONFLICT``: the requested range overlaps another active booking
   of the volunteer on the same day (flexible bookings add a 15 minute buffer)
4. ``CAPACITY_FULL``: a flexible shift has no free slots left
5. ``INVALID_TIME_SELECTION``: a flexible range is outside the window, outside
   the min/max hours, or its stated duration does not match the range

All reads and writes for one signup share a single transaction, so a rejected
or failed signup leaves no trace. The capacity check reads the current
headcount and then writes without a row lock; two simultaneous bookings for the
last slot can both succeed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, NoReturn, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from charity_hub.config import (
    DURATION_TOLERANCE_HOURS,
    FLEXIBLE_CONFLICT_BUFFER_MINUTES,
    SIGNUP_LEAD_TIME_HOURS,
)
from charity_hub.db.readers.shifts import (
    get_active_assignment,
    get_shift,
    list_active_assignments_on_day,
)
from charity_hub.db.readers.users import get_user_by_id
from charity_hub.db.writers.shifts import (
    adjust_flexible_slots_used,
    insert_assignment,
    set_shift_assignee,
    update_assignment,
)
from charity_hub.errors import ConflictError, InvalidInputError, NotFoundError
from charity_hub.metrics import shift_cancellations, shift_signups
from charity_hub.models.shifts import ASSIGNMENT_CANCELLED, ASSIGNMENT_CONFIRMED, SHIFT_FLEXIBLE
from charity_hub.schemas.shifts import FlexibleTimeSelection
from charity_hub.services.notifications import NotificationData, enqueue_notification
from charity_hub.utils.datetime import at_utc, format_clock, hours_between, parse_clock, utc_now
from charity_hub.utils.serialize import shift_title

logger = structlog.get_logger(__name__)


@dataclass
class EligibilityResult:
    """Outcome of the pre-booking checks."""

    eligible: bool
    reason: str = ""
    code: Optional[str] = None
    conflicts: list[dict[str, Any]] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class SignupResult:
    """A committed booking plus the outbox rows written with it."""

    response: dict[str, Any]
    notification: Optional[NotificationData] = None
    notification_ids: list[int] = field(default_factory=list)


def time_ranges_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Half-open overlap test: ranges that only touch do not overlap."""
    return start1 < end2 and start2 < end1


def booked_range(assignment: dict[str, Any]) -> tuple[time, time]:
    """Wall-clock range held by an assignment: its custom range or the whole shift."""
    if assignment["custom_start_time"] is not None and assignment["custom_end_time"] is not None:
        return assignment["custom_start_time"], assignment["custom_end_time"]
    return assignment["shift_start_time"], assignment["shift_end_time"]


def check_eligibility(
    conn: Connection,
    user_id: int,
    shift: dict[str, Any],
    start: time,
    end: time,
    now: Optional[datetime] = None,
) -> EligibilityResult:
    """
    Run the lead-time, assignment and same-day conflict checks.

    Args:
        conn: Active database connection
        user_id: Volunteer asking to book
        shift: Shift row
        start: Start of the range the volunteer wants
        end: End of the range the volunteer wants
        now: Current time (aware, UTC); defaults to the wall clock

    Returns:
        EligibilityResult: ``eligible`` False with reason/code on the first failed check
    """
    now = now or utc_now()
    flexible = shift["type"] == SHIFT_FLEXIBLE

    cutoff = now + timedelta(hours=SIGNUP_LEAD_TIME_HOURS)
    if at_utc(shift["date"], shift["start_time"]) < cutoff:
        return EligibilityResult(
            eligible=False,
            reason=f"Cannot sign up for shifts starting in less than {SIGNUP_LEAD_TIME_HOURS} hours",
            code="TOO_LATE",
            suggestions=[
                "Contact volunteer coordinator for emergency assignments",
                f"Look for shifts starting at least {SIGNUP_LEAD_TIME_HOURS} hours from now",
            ],
        )

    if not flexible and shift["assigned_volunteer_id"] is not None:
        mine = shift["assigned_volunteer_id"] == user_id
        return EligibilityResult(
            eligible=False,
            reason="You are already signed up for this shift" if mine else "Shift is already assigned",
            code="SHIFT_ALREADY_ASSIGNED",
            suggestions=[] if mine else ["Browse other available shifts"],
        )

    buffer = timedelta(minutes=FLEXIBLE_CONFLICT_BUFFER_MINUTES if flexible else 0)
    wanted_start = at_utc(shift["date"], start) - buffer
    wanted_end = at_utc(shift["date"], end) + buffer

    for existing in list_active_assignments_on_day(conn, user_id, shift["date"]):
        held_start, held_end = booked_range(existing)
        if time_ranges_overlap(
            wanted_start,
            wanted_end,
            at_utc(shift["date"], held_start),
            at_utc(shift["date"], held_end),
        ):
            detail = f"from {format_clock(held_start)} to {format_clock(held_end)}"
            if flexible:
                detail += f" (including {FLEXIBLE_CONFLICT_BUFFER_MINUTES}-minute buffer)"
            return EligibilityResult(
                eligible=False,
                reason=f"Time conflict with existing assignment {detail}",
                code="TIME_CONFLICT",
                conflicts=[
                    {
                        "assignment_id": existing["id"],
                        "shift_id": existing["shift_id"],
                        "start_time": format_clock(held_start),
                        "end_time": format_clock(held_end),
                    }
                ],
                suggestions=[
                    "Choose a different time slot",
                    "Cancel your existing shift if this one is more important",
                    "Contact coordinator about overlapping assignments",
                ],
            )

    return EligibilityResult(eligible=True)


def validate_flexible_time_selection(
    shift: dict[str, Any], start: time, end: time, duration: float
) -> Optional[str]:
    """
    Check a flexible range against the shift window and commitment limits.

    Args:
        shift: Flexible shift row
        start: Selected start
        end: Selected end
        duration: Hours the volunteer says they are committing

    Returns:
        Optional[str]: None when valid, otherwise the reason the selection is rejected
    """
    if end <= start:
        return "end time must be after start time"

    if start < shift["start_time"] or end > shift["end_time"]:
        return "selected time range is outside the available shift hours"

    if shift["minimum_hours"] is not None and duration < shift["minimum_hours"]:
        return f"minimum commitment is {shift['minimum_hours']:.1f} hours"

    if shift["maximum_hours"] is not None and duration > shift["maximum_hours"]:
        return f"maximum commitment is {shift['maximum_hours']:.1f} hours"

    if abs(hours_between(start, end) - duration) > DURATION_TOLERANCE_HOURS:
        return "duration doesn't match selected time range"

    return None


def _parse_selection(selection: FlexibleTimeSelection) -> tuple[time, time]:
    try:
        start = parse_clock(selection.start_time)
    except ValueError:
        raise InvalidInputError("invalid start time format", code="INVALID_START_TIME")
    try:
        end = parse_clock(selection.end_time)
    except ValueError:
        raise InvalidInputError("invalid end time format", code="INVALID_END_TIME")
    return start, end


def _reject(shift: dict[str, Any], user_id: int, exc: ConflictError | InvalidInputError) -> NoReturn:
    shift_signups.labels(shift_type=shift["type"], outcome=exc.code or "rejected").inc()
    logger.info(
        "shift_signup_rejected",
        shift_id=shift["id"],
        user_id=user_id,
        code=exc.code,
        reason=exc.message,
    )
    raise exc


def sign_up_for_shift(
    engine: Engine,
    user_id: int,
    shift_id: int,
    selection: Optional[FlexibleTimeSelection] = None,
    now: Optional[datetime] = None,
) -> SignupResult:
    """
    Book a volunteer onto a shift.

    Fixed and open shifts take the whole shift and record the volunteer on
    ``shifts.assigned_volunteer_id``. Flexible shifts take the selected range
    (or the whole window when nothing is selected) and bump
    ``flexible_slots_used``. Either way a Confirmed assignment is inserted in
    the same transaction.

    Args:
        engine: SQLAlchemy engine
        user_id: Volunteer booking the shift
        shift_id: Shift to book
        selection: Custom range for flexible shifts; ignored for fixed shifts
        now: Current time (aware, UTC); defaults to the wall clock

    Returns:
        SignupResult: Response body and the queued confirmation

    Raises:
        NotFoundError: Unknown shift
        ConflictError: TOO_LATE, SHIFT_ALREADY_ASSIGNED, TIME_CONFLICT or CAPACITY_FULL
        InvalidInputError: INVALID_START_TIME, INVALID_END_TIME or INVALID_TIME_SELECTION
    """
    now = now or utc_now()

    with engine.begin() as conn:
        shift = get_shift(conn, shift_id)
        if shift is None:
            raise NotFoundError("shift not found")

        flexible = shift["type"] == SHIFT_FLEXIBLE
        custom_start: Optional[time] = None
        custom_end: Optional[time] = None

        if flexible and selection is not None:
            try:
                start, end = _parse_selection(selection)
            except InvalidInputError as e:
                _reject(shift, user_id, e)
            duration = selection.duration
        else:
            start, end = shift["start_time"], shift["end_time"]
            duration = hours_between(start, end)

        eligibility = check_eligibility(conn, user_id, shift, start, end, now=now)
        if not eligibility.eligible:
            _reject(
                shift,
                user_id,
                ConflictError(
                    eligibility.reason,
                    code=eligibility.code,
                    conflicts=eligibility.conflicts,
                    suggestions=eligibility.suggestions,
                ),
            )

        if flexible:
            if shift["flexible_slots_used"] >= shift["flexible_slots"]:
                _reject(
                    shift,
                    user_id,
                    ConflictError("flexible shift capacity reached", code="CAPACITY_FULL"),
                )

            if selection is not None:
                problem = validate_flexible_time_selection(shift, start, end, duration)
                if problem:
                    _reject(
                        shift, user_id, InvalidInputError(problem, code="INVALID_TIME_SELECTION")
                    )

            custom_start, custom_end = start, end
            adjust_flexible_slots_used(conn, shift_id, 1)
        else:
            set_shift_assignee(conn, shift_id, user_id)

        assignment_id = insert_assignment(
            conn,
            {
                "shift_id": shift_id,
                "user_id": user_id,
                "status": ASSIGNMENT_CONFIRMED,
                "assigned_at": now,
                "custom_start_time": custom_start,
                "custom_end_time": custom_end,
                "duration": duration,
            },
        )
        volunteer = get_user_by_id(conn, user_id)
        notification = None
        notification_ids: list[int] = []
        if volunteer is not None:
            notification = NotificationData(
                to=volunteer["email"],
                subject=f"Shift confirmed: {shift_title(shift)}",
                template="shift_signup_confirmation",
                user_id=user_id,
                context={
                    "first_name": volunteer["first_name"],
                    "shift_title": shift_title(shift),
                    "shift_date": shift["date"].isoformat(),
                    "start_time": format_clock(start),
                    "end_time": format_clock(end),
                    "location": shift["location"],
                },
            )
            notification_ids.append(enqueue_notification(conn, notification))

    shift_signups.labels(shift_type=shift["type"], outcome="success").inc()
    logger.info(
        "shift_signup_confirmed",
        shift_id=shift_id,
        user_id=user_id,
        assignment_id=assignment_id,
        shift_type=shift["type"],
    )

    summary: dict[str, Any] = {
        "id": shift_id,
        "title": shift_title(shift),
        "date": shift["date"].isoformat(),
        "type": shift["type"],
        "assignment": assignment_id,
    }
    if flexible and selection is not None:
        summary.update(
            customStartTime=format_clock(start),
            customEndTime=format_clock(end),
            duration=duration,
        )
        message = (
            f"Successfully signed up for {duration:.1f} hours from "
            f"{format_clock(start)} to {format_clock(end)}"
        )
    else:
        summary.update(startTime=format_clock(start), endTime=format_clock(end), duration=duration)
        message = "Successfully signed up for shift"

    return SignupResult(
        response={"message": message, "assignment_id": assignment_id, "shift": summary},
        notification=notification,
        notification_ids=notification_ids,
    )


def cancel_shift_assignment(
    engine: Engine,
    user_id: int,
    shift_id: int,
    reason: str,
    now: Optional[datetime] = None,
) -> SignupResult:
    """
    Cancel the volunteer's active booking on a shift.

    The assignment becomes Cancelled with the notice given in hours (negative
    when cancelling after the start). A fixed shift is released by clearing
    ``assigned_volunteer_id``; a flexible shift gets its slot back.

    Raises:
        NotFoundError: Unknown shift or no active booking on it
    """
    now = now or utc_now()

    with engine.begin() as conn:
        shift = get_shift(conn, shift_id)
        if shift is None:
            raise NotFoundError("shift not found")

        assignment = get_active_assignment(conn, shift_id, user_id)
        if assignment is None:
            raise NotFoundError("Shift assignment not found")

        hours_notice = round(
            (at_utc(shift["date"], shift["start_time"]) - now).total_seconds() / 3600, 2
        )
        update_assignment(
            conn,
            assignment["id"],
            {
                "status": ASSIGNMENT_CANCELLED,
                "cancelled_at": now,
                "cancellation_reason": reason,
                "hours_notice": hours_notice,
            },
        )

        if shift["type"] == SHIFT_FLEXIBLE:
            adjust_flexible_slots_used(conn, shift_id, -1)
        elif shift["assigned_volunteer_id"] == user_id:
            set_shift_assignee(conn, shift_id, None)

        volunteer = get_user_by_id(conn, user_id)
        notification = None
        notification_ids: list[int] = []
        if volunteer is not None:
            notification = NotificationData(
                to=volunteer["email"],
                subject=f"Shift cancelled: {shift_title(shift)}",
                template="shift_cancellation",
                user_id=user_id,
                context={
                    "first_name": volunteer["first_name"],
                    "shift_title": shift_title(shift),
                    "shift_date": shift["date"].isoformat(),
                    "reason": reason,
                },
            )
            notification_ids.append(enqueue_notification(conn, notification))

    shift_cancellations.labels(shift_type=shift["type"]).inc()
    logger.info(
        "shift_assignment_cancelled",
        shift_id=shift_id,
        user_id=user_id,
        assignment_id=assignment["id"],
        hours_notice=hours_notice,
    )

    return SignupResult(
        response={
            "message": "Shift cancelled successfully",
            "assignment_id": assignment["id"],
            "hours_notice": hours_notice,
        },
        notification=notification,
        notification_ids=notification_ids,
    )
