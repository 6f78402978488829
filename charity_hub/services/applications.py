"""
Volunteer onboarding: application approval, rejection and bulk actions.

Approving an application is a single transaction that creates (or promotes)
the user, creates the volunteer profile and marks the application approved.

Bulk actions are deliberately not atomic across items. Each id runs in its own
transaction; a failing id is reported in ``failed`` while earlier and later ids
still commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from charity_hub.db.readers.applications import get_application
from charity_hub.db.readers.shifts import get_shift, list_user_assignments
from charity_hub.db.readers.users import get_user_by_email, get_user_by_id, get_volunteer_profile
from charity_hub.db.writers.applications import update_application
from charity_hub.db.writers.shifts import (
    adjust_flexible_slots_used,
    delete_user_assignments,
    set_shift_assignee,
)
from charity_hub.db.writers.users import (
    delete_user,
    insert_user,
    update_user,
    upsert_volunteer_profile,
)
from charity_hub.errors import AppError, ConflictError, InvalidInputError, NotFoundError
from charity_hub.metrics import bulk_action_items
from charity_hub.models.shifts import ASSIGNMENT_CANCELLED, SHIFT_FLEXIBLE
from charity_hub.models.users import ROLE_VOLUNTEER, STATUS_ACTIVE, STATUS_INACTIVE
from charity_hub.models.volunteers import (
    APPLICATION_APPROVED,
    APPLICATION_PENDING,
    APPLICATION_REJECTED,
)
from charity_hub.security import generate_temporary_password, hash_password
from charity_hub.services.audit import record_audit
from charity_hub.services.notifications import NotificationData, enqueue_notification
from charity_hub.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

BULK_ACTIONS = ("approve", "reject", "archive", "delete")


@dataclass
class ApprovalOutcome:
    user_id: int
    application: dict[str, Any]
    temporary_password: Optional[str] = None


@dataclass
class BulkOutcome:
    action: str
    successful: int = 0
    failed: list[dict[str, Any]] = field(default_factory=list)
    notification_ids: list[int] = field(default_factory=list)

    def as_response(self) -> dict[str, Any]:
        return {"action": self.action, "successful": self.successful, "failed": self.failed}


def approve_application(
    conn: Connection, application_id: int, admin_id: int, require_pending: bool = False
) -> ApprovalOutcome:
    """
    Turn an application into an active volunteer account.

    An existing user with the applicant's email is promoted to the volunteer
    role; otherwise a new user is created with a generated temporary password.

    Args:
        conn: Connection inside the caller's transaction
        application_id: Application to approve
        admin_id: Approving administrator
        require_pending: Reject anything not pending (bulk approve), not just approved ones

    Returns:
        ApprovalOutcome: user id, the application row and any temporary password

    Raises:
        NotFoundError: Unknown application
        ConflictError: Application already approved (or not pending when required)
    """
    application = get_application(conn, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    if require_pending and application["status"] != APPLICATION_PENDING:
        raise ConflictError("Application not in pending status")
    if application["status"] == APPLICATION_APPROVED:
        raise ConflictError("Application already approved")

    temporary_password: Optional[str] = None
    existing = get_user_by_email(conn, application["email"])
    if existing is not None:
        user_id = existing["id"]
        update_user(conn, user_id, {"role": ROLE_VOLUNTEER, "status": STATUS_ACTIVE})
    else:
        temporary_password = generate_temporary_password()
        user_id = insert_user(
            conn,
            {
                "first_name": application["first_name"],
                "last_name": application["last_name"],
                "email": application["email"],
                "phone": application["phone"],
                "password_hash": hash_password(temporary_password),
                "role": ROLE_VOLUNTEER,
                "status": STATUS_ACTIVE,
            },
        )

    upsert_volunteer_profile(
        conn,
        user_id,
        {
            "application_id": application_id,
            "skills": application["skills"],
            "experience": application["experience"],
            "availability": application["availability"],
            "status": "active",
        },
    )
    update_application(
        conn,
        application_id,
        {"status": APPLICATION_APPROVED, "approved_at": utc_now(), "approved_by": admin_id},
    )

    logger.info(
        "volunteer_application_approved",
        application_id=application_id,
        user_id=user_id,
        new_account=temporary_password is not None,
    )
    return ApprovalOutcome(
        user_id=user_id, application=application, temporary_password=temporary_password
    )


def approval_notification(outcome: ApprovalOutcome) -> NotificationData:
    application = outcome.application
    if outcome.temporary_password:
        return NotificationData(
            to=application["email"],
            subject="Your volunteer application has been approved",
            template="volunteer_approved",
            user_id=outcome.user_id,
            context={
                "first_name": application["first_name"],
                "email": application["email"],
                "temporary_password": outcome.temporary_password,
            },
        )
    return NotificationData(
        to=application["email"],
        subject="Welcome to the volunteer team",
        template="volunteer_welcome",
        user_id=outcome.user_id,
        context={"first_name": application["first_name"]},
    )


def reject_application(
    conn: Connection, application_id: int, reason: Optional[str]
) -> dict[str, Any]:
    """
    Mark a pending application rejected.

    Raises:
        NotFoundError: Unknown application
        ConflictError: Application is not pending
    """
    application = get_application(conn, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    if application["status"] != APPLICATION_PENDING:
        raise ConflictError("Application not in pending status")

    update_application(
        conn, application_id, {"status": APPLICATION_REJECTED, "rejection_reason": reason}
    )
    logger.info("volunteer_application_rejected", application_id=application_id)
    return application


def rejection_notification(application: dict[str, Any], reason: Optional[str]) -> NotificationData:
    return NotificationData(
        to=application["email"],
        subject="Your volunteer application",
        template="volunteer_rejected",
        context={"first_name": application["first_name"], "reason": reason or ""},
    )


def archive_volunteer(conn: Connection, user_id: int, notes: Optional[str]) -> dict[str, Any]:
    """
    Deactivate a volunteer account and its profile.

    Raises:
        NotFoundError: No volunteer with that id
    """
    user = get_user_by_id(conn, user_id)
    if user is None or user["role"] != ROLE_VOLUNTEER:
        raise NotFoundError("Volunteer not found")

    update_user(conn, user_id, {"status": STATUS_INACTIVE})
    if get_volunteer_profile(conn, user_id) is not None:
        upsert_volunteer_profile(
            conn, user_id, {"status": "inactive", "notes": f"Archived: {notes or ''}".strip()}
        )
    return user


def release_volunteer_shifts(conn: Connection, user_id: int) -> int:
    """
    Give back every shift place a volunteer holds and drop their bookings.

    Each non-cancelled flexible booking returns one slot to
    ``flexible_slots_used``; a fixed shift pointing at the volunteer is
    cleared.

    Returns:
        int: Number of bookings removed
    """
    for booking in list_user_assignments(conn, user_id):
        if booking["status"] == ASSIGNMENT_CANCELLED:
            continue
        if booking["shift_type"] == SHIFT_FLEXIBLE:
            adjust_flexible_slots_used(conn, booking["shift_id"], -1)
            continue
        shift = get_shift(conn, booking["shift_id"])
        if shift is not None and shift["assigned_volunteer_id"] == user_id:
            set_shift_assignee(conn, booking["shift_id"], None)
    return delete_user_assignments(conn, user_id)


def remove_volunteer(conn: Connection, user_id: int) -> dict[str, Any]:
    """
    Hard delete a volunteer account, releasing the shift places it held.

    Raises:
        NotFoundError: No volunteer with that id
    """
    user = get_user_by_id(conn, user_id)
    if user is None or user["role"] != ROLE_VOLUNTEER:
        raise NotFoundError("Volunteer not found")
    removed = release_volunteer_shifts(conn, user_id)
    delete_user(conn, user_id)
    logger.info("volunteer_removed", user_id=user_id, bookings_removed=removed)
    return user


def _apply_bulk_item(
    conn: Connection,
    action: str,
    item_id: int,
    admin_id: int,
    reason: Optional[str],
    notes: Optional[str],
) -> tuple[str, str, Optional[NotificationData]]:
    """Apply one bulk action to one id; returns (entity type, audit text, notification)."""
    if action == "approve":
        approved = approve_application(conn, item_id, admin_id, require_pending=True)
        return (
            "VolunteerApplication",
            f"Bulk approved volunteer application {item_id}",
            approval_notification(approved),
        )
    if action == "reject":
        rejected = reject_application(conn, item_id, reason)
        return (
            "VolunteerApplication",
            f"Bulk rejected volunteer application {item_id}. Reason: {reason or ''}".strip(),
            rejection_notification(rejected, reason),
        )
    if action == "archive":
        user = archive_volunteer(conn, item_id, notes)
        return (
            "User",
            f"Bulk archived volunteer {item_id}",
            NotificationData(
                to=user["email"],
                subject="Your volunteer account has been archived",
                template="volunteer_archived",
                context={"first_name": user["first_name"], "reason": notes or ""},
            ),
        )
    remove_volunteer(conn, item_id)
    return "User", f"Bulk deleted volunteer {item_id}", None


def run_bulk_action(
    engine: Engine,
    action: str,
    volunteer_ids: list[int],
    admin: dict[str, Any],
    reason: Optional[str] = None,
    notes: Optional[str] = None,
    send_email: bool = False,
    override_rules: bool = False,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> BulkOutcome:
    """
    Apply one admin action to many ids, each in its own transaction.

    Args:
        engine: SQLAlchemy engine
        action: approve, reject, archive or delete
        volunteer_ids: Application ids (approve/reject) or volunteer user ids (archive/delete)
        admin: Acting administrator's user row
        reason: Rejection reason, shared with applicants
        notes: Archive note stored on the volunteer profile
        send_email: Write an outbox row for each successful item
        override_rules: Must be True for delete
        ip_address: Client address recorded in the audit trail
        user_agent: Client user agent recorded in the audit trail

    Returns:
        BulkOutcome: success count, per-id failures and outbox ids to deliver

    Raises:
        InvalidInputError: Unknown action, or delete without ``override_rules``
    """
    if action not in BULK_ACTIONS:
        raise InvalidInputError("Invalid action")
    if action == "delete" and not override_rules:
        raise InvalidInputError("deletion requires override confirmation")

    outcome = BulkOutcome(action=action)
    performed_by = str(admin["id"])

    for item_id in volunteer_ids:
        try:
            with engine.begin() as conn:
                entity_type, description, notification = _apply_bulk_item(
                    conn, action, item_id, admin["id"], reason, notes
                )
                notification_id: Optional[int] = None
                if send_email and notification is not None:
                    notification_id = enqueue_notification(conn, notification)
        except AppError as e:
            outcome.failed.append({"volunteer_id": item_id, "reason": e.message})
            bulk_action_items.labels(action=action, result="failure").inc()
            continue
        except SQLAlchemyError as e:
            logger.error("bulk_action_item_failed", action=action, item_id=item_id, error=str(e))
            outcome.failed.append({"volunteer_id": item_id, "reason": "Database error"})
            bulk_action_items.labels(action=action, result="failure").inc()
            continue

        outcome.successful += 1
        if notification_id is not None:
            outcome.notification_ids.append(notification_id)
        bulk_action_items.labels(action=action, result="success").inc()
        record_audit(
            engine,
            action=f"bulk_{action}",
            entity_type=entity_type,
            entity_id=item_id,
            description=description,
            performed_by=performed_by,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    logger.info(
        "bulk_action_completed",
        action=action,
        requested=len(volunteer_ids),
        successful=outcome.successful,
        failed=len(outcome.failed),
        admin_id=admin["id"],
    )
    return outcome
