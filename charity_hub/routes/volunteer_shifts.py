from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.engine import Engine

from charity_hub.db.readers.shifts import list_open_shifts, list_user_assignments
from charity_hub.dependencies import get_db_engine, require_roles
from charity_hub.errors import AppError
from charity_hub.models.shifts import ACTIVE_ASSIGNMENT_STATUSES
from charity_hub.models.users import ROLE_VOLUNTEER
from charity_hub.routes._helpers import queue_notifications, shift_or_404
from charity_hub.schemas.shifts import ShiftCancelRequest, ShiftSignupRequest
from charity_hub.services.shift_signup import cancel_shift_assignment, sign_up_for_shift
from charity_hub.services.shift_validation import recommend_shifts, validate_shift_detailed
from charity_hub.utils.datetime import at_utc, utc_now
from charity_hub.utils.serialize import serialize_row, serialize_shift

logger = structlog.get_logger(__name__)
router = APIRouter()

require_volunteer = require_roles(ROLE_VOLUNTEER)


@router.post("/volunteer/shifts/{shift_id}/signup")
def signup_for_shift(
    shift_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[ShiftSignupRequest] = None,
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Book the current volunteer onto a shift.

    Flexible shifts accept ``{"flexibleTime": {"startTime", "endTime",
    "duration"}}``; without it the whole window is booked. A rejected booking
    returns 409 (or 400 for a bad time selection) with a ``code``.

    Args:
        shift_id: Shift to book
        background_tasks: Sends the confirmation after the response
        payload: Optional flexible time selection

    Returns:
        dict: message, assignment_id and a shift summary
    """
    selection = payload.flexible_time if payload else None
    try:
        result = sign_up_for_shift(db_engine, volunteer["id"], shift_id, selection)
    except AppError:
        raise
    except Exception as e:
        logger.exception("shift_signup_failed", shift_id=shift_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    queue_notifications(background_tasks, db_engine, result.notification_ids)
    return result.response


@router.post("/volunteer/shifts/{shift_id}/cancel")
def cancel_shift(
    shift_id: int,
    payload: ShiftCancelRequest,
    background_tasks: BackgroundTasks,
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        result = cancel_shift_assignment(db_engine, volunteer["id"], shift_id, payload.reason)
    except AppError:
        raise
    except Exception as e:
        logger.exception("shift_cancellation_failed", shift_id=shift_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    queue_notifications(background_tasks, db_engine, result.notification_ids)
    return result.response


@router.get("/volunteer/shifts/available")
def get_available_shifts(
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Upcoming shifts with room that the volunteer has not booked."""
    now = utc_now()
    with db_engine.connect() as conn:
        rows = list_open_shifts(conn, volunteer["id"], now.date())
    upcoming = [r for r in rows if at_utc(r["date"], r["start_time"]) > now]
    return {"shifts": [serialize_shift(r) for r in upcoming], "total": len(upcoming)}


@router.get("/volunteer/shifts/assigned")
def get_assigned_shifts(
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Active bookings that have not finished yet."""
    now = utc_now()
    with db_engine.connect() as conn:
        rows = list_user_assignments(conn, volunteer["id"], statuses=ACTIVE_ASSIGNMENT_STATUSES)
    current = [r for r in rows if at_utc(r["shift_date"], r["shift_end_time"]) >= now]
    return {"assignments": [serialize_row(r) for r in current], "total": len(current)}


@router.get("/volunteer/shifts/history")
def get_shift_history(
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Finished, cancelled and no-show bookings, most recent first."""
    now = utc_now()
    with db_engine.connect() as conn:
        rows = list_user_assignments(conn, volunteer["id"])
    past = [
        r
        for r in rows
        if r["status"] not in ACTIVE_ASSIGNMENT_STATUSES
        or at_utc(r["shift_date"], r["shift_end_time"]) < now
    ]
    past.reverse()
    return {"assignments": [serialize_row(r) for r in past], "total": len(past)}


@router.get("/volunteer/shifts/recommendations")
def get_recommendations(
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        return recommend_shifts(conn, volunteer["id"])


@router.get("/volunteer/shifts/{shift_id}/validate")
def validate_shift(
    shift_id: int,
    volunteer: dict[str, Any] = Depends(require_volunteer),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Explain whether the volunteer could take a shift, without booking it.
    """
    with db_engine.connect() as conn:
        shift = shift_or_404(conn, shift_id)
        result = validate_shift_detailed(conn, volunteer["id"], shift)
    return {"shift_id": shift_id, **result}
