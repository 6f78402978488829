"""
Integration tests for shift booking and cancellation against SQLite.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any
from unittest.mock import patch

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from charity_hub.db.readers.notifications import list_user_notifications
from charity_hub.db.readers.shifts import get_assignment, get_shift, list_shift_assignments
from charity_hub.errors import ConflictError, InvalidInputError, NotFoundError
from charity_hub.schemas.shifts import FlexibleTimeSelection
from charity_hub.services.shift_admin import complete_assignment, record_no_show
from charity_hub.services.shift_signup import cancel_shift_assignment, sign_up_for_shift
from charity_hub.utils.datetime import at_utc


@pytest.fixture
def now(shift_day: date) -> datetime:
    """The evening before the test shifts."""
    return at_utc(shift_day - timedelta(days=1), time(18, 0))


@pytest.mark.integration
def test_fixed_signup_assigns_volunteer(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that booking a fixed shift records the volunteer on the shift."""
    volunteer = make_user()
    shift = make_shift()

    result = sign_up_for_shift(engine, volunteer["id"], shift["id"], now=now)

    assert result.response["message"] == "Successfully signed up for shift"
    assert result.response["shift"]["id"] == shift["id"]
    assert result.response["shift"]["startTime"] == "09:00"
    assert result.notification is not None
    assert result.notification.template == "shift_signup_confirmation"

    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["assigned_volunteer_id"] == volunteer["id"]
        assignment = get_assignment(conn, result.response["assignment_id"])
    assert assignment["status"] == "Confirmed"
    assert assignment["duration"] == 3.0


@pytest.mark.integration
def test_signup_inside_lead_time_is_too_late(
    engine: Engine, make_user: Any, make_shift: Any, shift_day: date
) -> None:
    """Test that a shift starting within two hours cannot be booked."""
    volunteer = make_user()
    shift = make_shift()

    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(
            engine, volunteer["id"], shift["id"], now=at_utc(shift_day, time(7, 30))
        )

    assert exc_info.value.code == "TOO_LATE"
    assert "less than 2 hours" in exc_info.value.message
    with engine.connect() as conn:
        assert len(list_shift_assignments(conn, shift["id"])) == 0


@pytest.mark.integration
def test_signup_at_exactly_two_hours_is_allowed(
    engine: Engine, make_user: Any, make_shift: Any, shift_day: date
) -> None:
    """Test that the lead-time boundary itself is still bookable."""
    volunteer = make_user()
    shift = make_shift()

    result = sign_up_for_shift(engine, volunteer["id"], shift["id"], now=at_utc(shift_day, time(7, 0)))

    assert result.response["assignment_id"] > 0


@pytest.mark.integration
def test_fixed_shift_taken_by_someone_else(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that a second volunteer cannot take an assigned fixed shift."""
    first, second = make_user(), make_user()
    shift = make_shift()
    sign_up_for_shift(engine, first["id"], shift["id"], now=now)

    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(engine, second["id"], shift["id"], now=now)

    assert exc_info.value.code == "SHIFT_ALREADY_ASSIGNED"
    assert exc_info.value.message == "Shift is already assigned"


@pytest.mark.integration
def test_same_volunteer_signing_up_twice(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that rebooking your own fixed shift is reported as such."""
    volunteer = make_user()
    shift = make_shift()
    sign_up_for_shift(engine, volunteer["id"], shift["id"], now=now)

    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(engine, volunteer["id"], shift["id"], now=now)

    assert exc_info.value.message == "You are already signed up for this shift"


@pytest.mark.integration
def test_overlapping_shift_same_day_conflicts(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that two overlapping bookings on the same day are rejected."""
    volunteer = make_user()
    morning = make_shift(start_time=time(9, 0), end_time=time(12, 0))
    late_morning = make_shift(start_time=time(11, 0), end_time=time(13, 0))
    sign_up_for_shift(engine, volunteer["id"], morning["id"], now=now)

    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(engine, volunteer["id"], late_morning["id"], now=now)

    err = exc_info.value
    assert err.code == "TIME_CONFLICT"
    assert err.message == "Time conflict with existing assignment from 09:00 to 12:00"
    assert err.extra["conflicts"][0]["shift_id"] == morning["id"]


@pytest.mark.integration
def test_back_to_back_fixed_shifts_do_not_conflict(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that a shift starting when another ends can be booked."""
    volunteer = make_user()
    morning = make_shift(start_time=time(9, 0), end_time=time(12, 0))
    afternoon = make_shift(start_time=time(12, 0), end_time=time(15, 0))
    sign_up_for_shift(engine, volunteer["id"], morning["id"], now=now)

    result = sign_up_for_shift(engine, volunteer["id"], afternoon["id"], now=now)

    assert result.response["shift"]["id"] == afternoon["id"]


@pytest.mark.integration
def test_flexible_buffer_catches_adjacent_booking(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that flexible bookings keep a 15 minute gap from other bookings."""
    volunteer = make_user()
    morning = make_shift(start_time=time(9, 0), end_time=time(12, 0))
    flexible = make_shift(type="flexible", start_time=time(12, 0), end_time=time(16, 0))
    sign_up_for_shift(engine, volunteer["id"], morning["id"], now=now)

    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(
            engine,
            volunteer["id"],
            flexible["id"],
            selection=FlexibleTimeSelection(start_time="12:00", end_time="13:00", duration=1.0),
            now=now,
        )

    assert exc_info.value.code == "TIME_CONFLICT"
    assert "15-minute buffer" in exc_info.value.message


@pytest.mark.integration
def test_flexible_capacity_full(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that the booking after the last slot is refused."""
    shift = make_shift(type="flexible", flexible_slots=2)
    volunteers = [make_user() for _ in range(3)]

    sign_up_for_shift(engine, volunteers[0]["id"], shift["id"], now=now)
    sign_up_for_shift(engine, volunteers[1]["id"], shift["id"], now=now)
    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(engine, volunteers[2]["id"], shift["id"], now=now)

    assert exc_info.value.code == "CAPACITY_FULL"
    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["flexible_slots_used"] == 2
        assert len(list_shift_assignments(conn, shift["id"])) == 2


@pytest.mark.integration
def test_flexible_selection_within_window(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that a valid custom range is booked with its duration."""
    volunteer = make_user()
    shift = make_shift(type="flexible", start_time=time(8, 0), end_time=time(12, 0))

    result = sign_up_for_shift(
        engine,
        volunteer["id"],
        shift["id"],
        selection=FlexibleTimeSelection(start_time="09:00", end_time="10:30", duration=1.5),
        now=now,
    )

    assert result.response["message"] == "Successfully signed up for 1.5 hours from 09:00 to 10:30"
    assert result.response["shift"]["customStartTime"] == "09:00"
    assert result.response["shift"]["customEndTime"] == "10:30"
    with engine.connect() as conn:
        assignment = get_assignment(conn, result.response["assignment_id"])
        assert get_shift(conn, shift["id"])["flexible_slots_used"] == 1
    assert assignment["custom_start_time"] == time(9, 0)
    assert assignment["custom_end_time"] == time(10, 30)
    assert assignment["duration"] == 1.5


@pytest.mark.integration
@pytest.mark.parametrize(
    "start,end,duration,message",
    [
        ("09:00", "10:30", 1.0, "duration doesn't match selected time range"),
        ("07:00", "09:00", 2.0, "selected time range is outside the available shift hours"),
        ("09:00", "09:30", 0.5, "minimum commitment is 1.0 hours"),
        ("10:00", "09:00", 1.0, "end time must be after start time"),
    ],
)
def test_flexible_selection_rejected(
    engine: Engine,
    make_user: Any,
    make_shift: Any,
    now: datetime,
    start: str,
    end: str,
    duration: float,
    message: str,
) -> None:
    """Test that invalid custom ranges are refused and nothing is booked."""
    volunteer = make_user()
    shift = make_shift(type="flexible", start_time=time(8, 0), end_time=time(12, 0))

    with pytest.raises(InvalidInputError) as exc_info:
        sign_up_for_shift(
            engine,
            volunteer["id"],
            shift["id"],
            selection=FlexibleTimeSelection(start_time=start, end_time=end, duration=duration),
            now=now,
        )

    assert exc_info.value.code == "INVALID_TIME_SELECTION"
    assert exc_info.value.message == message
    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["flexible_slots_used"] == 0


@pytest.mark.integration
def test_flexible_selection_bad_clock_value(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that an unparseable start time is reported with its own code."""
    volunteer = make_user()
    shift = make_shift(type="flexible")

    with pytest.raises(InvalidInputError) as exc_info:
        sign_up_for_shift(
            engine,
            volunteer["id"],
            shift["id"],
            selection=FlexibleTimeSelection(start_time="9am", end_time="10:00", duration=1.0),
            now=now,
        )

    assert exc_info.value.code == "INVALID_START_TIME"


@pytest.mark.integration
def test_signup_unknown_shift(engine: Engine, make_user: Any, now: datetime) -> None:
    """Test that booking a missing shift raises NotFoundError."""
    volunteer = make_user()

    with pytest.raises(NotFoundError):
        sign_up_for_shift(engine, volunteer["id"], 999, now=now)


@pytest.mark.integration
def test_cancel_fixed_shift_releases_it(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that cancelling clears the assignee and records the notice."""
    volunteer = make_user()
    shift = make_shift()
    booking = sign_up_for_shift(engine, volunteer["id"], shift["id"], now=now)

    result = cancel_shift_assignment(engine, volunteer["id"], shift["id"], "Feeling unwell", now=now)

    assert result.response["message"] == "Shift cancelled successfully"
    assert result.response["hours_notice"] == 15.0
    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["assigned_volunteer_id"] is None
        assignment = get_assignment(conn, booking.response["assignment_id"])
    assert assignment["status"] == "Cancelled"
    assert assignment["cancellation_reason"] == "Feeling unwell"


@pytest.mark.integration
def test_cancel_flexible_returns_slot(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that cancelling a flexible booking frees its slot for someone else."""
    shift = make_shift(type="flexible", flexible_slots=1)
    first, second = make_user(), make_user()
    sign_up_for_shift(engine, first["id"], shift["id"], now=now)

    cancel_shift_assignment(engine, first["id"], shift["id"], "Plans changed", now=now)
    sign_up_for_shift(engine, second["id"], shift["id"], now=now)

    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["flexible_slots_used"] == 1


@pytest.mark.integration
def test_cancel_without_booking(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that cancelling a shift you never booked is a 404."""
    volunteer = make_user()
    shift = make_shift()

    with pytest.raises(NotFoundError) as exc_info:
        cancel_shift_assignment(engine, volunteer["id"], shift["id"], "n/a", now=now)

    assert exc_info.value.message == "Shift assignment not found"


@pytest.mark.integration
def test_no_show_keeps_flexible_slot(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that a no-show still holds its slot, so the next booking is refused."""
    admin = make_user(role="admin")
    shift = make_shift(type="flexible", flexible_slots=1)
    first, second = make_user(), make_user()
    booking = sign_up_for_shift(engine, first["id"], shift["id"], now=now)

    record_no_show(engine, booking.response["assignment_id"], recorded_by=admin["id"])
    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(engine, second["id"], shift["id"], now=now)

    assert exc_info.value.code == "CAPACITY_FULL"
    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["flexible_slots_used"] == 1


@pytest.mark.integration
def test_completed_booking_keeps_flexible_slot(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that completing an assignment does not free its slot."""
    shift = make_shift(type="flexible", flexible_slots=1)
    first, second = make_user(), make_user()
    booking = sign_up_for_shift(engine, first["id"], shift["id"], now=now)

    complete_assignment(engine, booking.response["assignment_id"])
    with pytest.raises(ConflictError) as exc_info:
        sign_up_for_shift(engine, second["id"], shift["id"], now=now)

    assert exc_info.value.code == "CAPACITY_FULL"
    with engine.connect() as conn:
        assert get_shift(conn, shift["id"])["flexible_slots_used"] == 1


@pytest.mark.integration
@pytest.mark.parametrize("shift_type", ["fixed", "flexible"])
def test_failed_insert_rolls_back_whole_booking(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime, shift_type: str
) -> None:
    """Test that a failure writing the assignment leaves the shift untouched."""
    volunteer = make_user()
    shift = make_shift(type=shift_type)

    with patch(
        "charity_hub.services.shift_signup.insert_assignment",
        side_effect=SQLAlchemyError("disk full"),
    ):
        with pytest.raises(SQLAlchemyError):
            sign_up_for_shift(engine, volunteer["id"], shift["id"], now=now)

    with engine.connect() as conn:
        after = get_shift(conn, shift["id"])
        assert list_shift_assignments(conn, shift["id"]) == []
        assert list_user_notifications(conn, volunteer["id"]) == []
    assert after["assigned_volunteer_id"] is None
    assert after["flexible_slots_used"] == 0


@pytest.mark.integration
def test_signup_writes_outbox_row_with_booking(
    engine: Engine, make_user: Any, make_shift: Any, now: datetime
) -> None:
    """Test that the confirmation is already pending in the outbox when signup returns."""
    volunteer = make_user()
    shift = make_shift()

    result = sign_up_for_shift(engine, volunteer["id"], shift["id"], now=now)

    with engine.connect() as conn:
        notifications = list_user_notifications(conn, volunteer["id"])
    assert [n["id"] for n in notifications] == result.notification_ids
    assert notifications[0]["status"] == "pending"
    assert notifications[0]["template"] == "shift_signup_confirmation"
