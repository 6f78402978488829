from typing import Any, Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy.engine import Engine

from charity_hub.db.readers.applications import application_email_exists, list_applications
from charity_hub.db.readers.users import list_active_volunteers
from charity_hub.db.writers.applications import insert_application
from charity_hub.dependencies import get_db_engine, require_admin
from charity_hub.errors import AppError, ConflictError, InvalidInputError
from charity_hub.routes._helpers import client_context, enqueue_all, queue_notifications
from charity_hub.schemas.applications import (
    ApplicationRejectPayload,
    BulkActionResult,
    BulkVolunteerAction,
    VolunteerApplicationPayload,
)
from charity_hub.services.applications import (
    approval_notification,
    approve_application,
    reject_application,
    rejection_notification,
    run_bulk_action,
)
from charity_hub.services.audit import record_audit
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/volunteer/applications", status_code=status.HTTP_201_CREATED)
def submit_application(
    payload: VolunteerApplicationPayload,
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Submit a public volunteer application.

    Args:
        payload: Applicant details; ``terms_accepted`` must be true

    Returns:
        dict: Confirmation message and the application id
    """
    if not payload.terms_accepted:
        raise InvalidInputError("You must accept the terms to apply")

    try:
        with db_engine.begin() as conn:
            if application_email_exists(conn, payload.email):
                raise ConflictError("An application with this email already exists")
            application_id = insert_application(conn, payload.model_dump())

        return {"message": "Application submitted successfully", "application_id": application_id}

    except AppError:
        raise
    except Exception as e:
        logger.exception("volunteer_application_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/admin/volunteer/applications")
def get_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        rows = list_applications(conn, status=status_filter)
    return {"applications": [serialize_row(r) for r in rows], "total": len(rows)}


@router.post("/admin/volunteer/applications/{application_id}/approve")
def approve(
    application_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Approve an application, creating the volunteer account and profile together.

    Returns:
        dict: Confirmation message and the volunteer's user id
    """
    try:
        with db_engine.begin() as conn:
            outcome = approve_application(conn, application_id, admin["id"])
            notification_ids = enqueue_all(conn, [approval_notification(outcome)])

        ip_address, user_agent = client_context(request)
        record_audit(
            db_engine,
            action="approve_volunteer",
            entity_type="VolunteerApplication",
            entity_id=application_id,
            description=f"Approved volunteer application {application_id}",
            performed_by=str(admin["id"]),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        queue_notifications(background_tasks, db_engine, notification_ids)

        return {"message": "Application approved", "user_id": outcome.user_id}

    except AppError:
        raise
    except Exception as e:
        logger.exception("application_approval_failed", application_id=application_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/admin/volunteer/applications/{application_id}/reject")
def reject(
    application_id: int,
    payload: ApplicationRejectPayload,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    try:
        with db_engine.begin() as conn:
            application = reject_application(conn, application_id, payload.reason)
            notification_ids = enqueue_all(
                conn, [rejection_notification(application, payload.reason)]
            )

        ip_address, user_agent = client_context(request)
        record_audit(
            db_engine,
            action="reject_volunteer",
            entity_type="VolunteerApplication",
            entity_id=application_id,
            description=f"Rejected volunteer application {application_id}",
            performed_by=str(admin["id"]),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        queue_notifications(background_tasks, db_engine, notification_ids)

        return {"message": "Application rejected"}

    except AppError:
        raise
    except Exception as e:
        logger.exception("application_rejection_failed", application_id=application_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/admin/volunteer/bulk", response_model=BulkActionResult)
def bulk_volunteer_action(
    payload: BulkVolunteerAction,
    request: Request,
    background_tasks: BackgroundTasks,
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Apply approve, reject, archive or delete to many ids.

    Every id is processed independently. The response is 200 even when some
    ids fail; failures are listed with their reason.

    Args:
        payload: Action, ids and options
        request: Used for the audit trail's client address and user agent
        background_tasks: Runs notification delivery after the response

    Returns:
        dict: ``{action, successful, failed: [{volunteer_id, reason}]}``
    """
    ip_address, user_agent = client_context(request)
    try:
        outcome = run_bulk_action(
            db_engine,
            action=payload.action,
            volunteer_ids=payload.volunteer_ids,
            admin=admin,
            reason=payload.reason,
            notes=payload.notes,
            send_email=payload.send_email,
            override_rules=payload.override_rules,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except AppError:
        raise
    except Exception as e:
        logger.exception("bulk_action_failed", action=payload.action, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    queue_notifications(background_tasks, db_engine, outcome.notification_ids)
    return outcome.as_response()


@router.get("/admin/volunteers")
def get_volunteers(
    admin: dict[str, Any] = Depends(require_admin),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    with db_engine.connect() as conn:
        volunteers = list_active_volunteers(conn)
    return {"volunteers": volunteers, "total": len(volunteers)}
