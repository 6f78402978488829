from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.engine import Engine

from charity_hub.db.readers.shifts import list_shift_assignments, list_shifts
from charity_hub.db.writers.shifts import delete_shift
from charity_hub.dependencies import get_current_user, get_db_engine, require_admin
from charity_hub.errors import AppError, InvalidInputError
from charity_hub.routes._helpers import client_context, shift_or_404
from charity_hub.schemas.shifts import (
    CapacityUpdatePayload,
    CompleteAssignmentPayload,
    FlexibleShiftCreatePayload,
    NoShowPayload,
    ShiftCreatePayload,
    ShiftUpdatePayload,
)
from charity_hub.services.audit import record_audit
from charity_hub.services.shift_admin import (
    apply_shift_update,
    build_fixed_shift,
    build_flexible_shift,
    capacity_report,
    complete_assignment,
    create_shift,
    record_no_show,
    time_slots,
    update_capacity,
)
from charity_hub.utils.datetime import parse_day
from charity_hub.utils.serialize import serialize_row, serialize_shift

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/admin/shifts", status_code=status.HTTP_201_CREATED)
def create_fixed_shift(
    payload: ShiftCreatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a fixed or open shift.

    Args:
        payload: Date, times, location and staffing

    Returns:
        dict: Confirmation message and the created shift
    """
    values = build_fixed_shift(payload)
    try:
        with db_engine.begin() as conn:
            shift = create_shift(conn, values)
    except Exception as e:
        logger.exception("shift_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("shift_created", shift_id=shift["id"], shift_type=shift["type"], admin_id=admin["id"])
    return {"message": "Shift created successfully", "shift": serialize_shift(shift)}


@router.post("/admin/shifts/flexible", status_code=status.HTTP_201_CREATED)
def create_flexible_shift(
    payload: FlexibleShiftCreatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a flexible shift whose window volunteers book in custom ranges.

    Returns:
        dict: Confirmation message and the created shift
    """
    values = build_flexible_shift(payload)
    try:
        with db_engine.begin() as conn:
            shift = create_shift(conn, values)
    except Exception as e:
        logger.exception("flexible_shift_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(
        "flexible_shift_created",
        shift_id=shift["id"],
        flexible_slots=shift["flexible_slots"],
        admin_id=admin["id"],
    )
    return {"message": "Flexible shift created successfully", "shift": serialize_shift(shift)}


@router.get("/admin/shifts")
def get_shifts(
    date: Optional[str] = Query(None, description="Only shifts on this date, YYYY-MM-DD"),
    location: Optional[str] = Query(None),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    day = None
    if date:
        try:
            day = parse_day(date)
        except ValueError:
            raise InvalidInputError("invalid date format, use YYYY-MM-DD")

    with db_engine.connect() as conn:
        rows = list_shifts(conn, day=day, location=location)
    return {"shifts": [serialize_shift(r) for r in rows], "total": len(rows)}


@router.get("/admin/shifts/{shift_id}")
def get_shift_detail(
    shift_id: int,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        shift = shift_or_404(conn, shift_id)
        assignments = list_shift_assignments(conn, shift_id, active_only=False)
    return {
        "shift": serialize_shift(shift),
        "assignments": [serialize_row(a) for a in assignments],
    }


@router.put("/admin/shifts/{shift_id}")
def update_shift_endpoint(
    shift_id: int,
    payload: ShiftUpdatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with db_engine.begin() as conn:
            shift = shift_or_404(conn, shift_id)
            updated = apply_shift_update(conn, shift, payload)

        logger.info("shift_updated", shift_id=shift_id, admin_id=admin["id"])
        return {"message": "Shift updated successfully", "shift": serialize_shift(updated)}

    except AppError:
        raise
    except Exception as e:
        logger.exception("shift_update_failed", shift_id=shift_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/admin/shifts/{shift_id}")
def delete_shift_endpoint(
    shift_id: int,
    request: Request,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """
    Permanently delete a shift and every booking on it.
    """
    try:
        with db_engine.begin() as conn:
            shift_or_404(conn, shift_id)
            delete_shift(conn, shift_id)

        ip_address, user_agent = client_context(request)
        record_audit(
            db_engine,
            action="delete_shift",
            entity_type="Shift",
            entity_id=shift_id,
            description=f"Deleted shift {shift_id}",
            performed_by=str(admin["id"]),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("shift_deleted", shift_id=shift_id, admin_id=admin["id"])
        return {"message": "Shift deleted successfully"}

    except AppError:
        raise
    except Exception as e:
        logger.exception("shift_deletion_failed", shift_id=shift_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/admin/shifts/{shift_id}/capacity")
def get_capacity(
    shift_id: int,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        return capacity_report(conn, shift_id)


@router.put("/admin/shifts/{shift_id}/capacity")
def put_capacity(
    shift_id: int,
    payload: CapacityUpdatePayload,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.begin() as conn:
        return update_capacity(conn, shift_id, payload.flexible_slots)


@router.get("/shifts/{shift_id}/time-slots")
def get_time_slots(
    shift_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Slots across a flexible shift window, each marked available or taken.
    """
    with db_engine.connect() as conn:
        return time_slots(conn, shift_id)


@router.post("/admin/shifts/assignments/{assignment_id}/complete")
def complete_assignment_endpoint(
    assignment_id: int,
    payload: Optional[CompleteAssignmentPayload] = None,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    hours = payload.hours_logged if payload else None
    try:
        return complete_assignment(db_engine, assignment_id, hours)
    except AppError:
        raise
    except Exception as e:
        logger.exception("assignment_completion_failed", assignment_id=assignment_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/admin/shifts/assignments/{assignment_id}/no-show")
def no_show_endpoint(
    assignment_id: int,
    payload: Optional[NoShowPayload] = None,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    reason = payload.reason if payload else None
    try:
        return record_no_show(db_engine, assignment_id, admin["id"], reason)
    except AppError:
        raise
    except Exception as e:
        logger.exception("no_show_recording_failed", assignment_id=assignment_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
