"""
Notification outbox: enqueue, render, deliver and retry.

Notifications are written to the ``notifications`` table on the same connection
as the booking or approval that triggers them, so the row commits or rolls back
with it. Delivery happens after commit, usually from a FastAPI background task,
and pending rows left behind by a crash are picked up by the retry pass.
Delivery POSTs a JSON payload to ``NOTIFICATION_WEBHOOK_URL`` when configured
(an email relay, for example) and otherwise writes the rendered message to the
log. Failed attempts stay ``pending`` until ``NOTIFICATION_MAX_ATTEMPTS`` is
reached, after which the row is parked as ``failed`` for an admin to inspect.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

import requests
import structlog
from sqlalchemy.engine import Connection, Engine

from charity_hub.config import NOTIFICATION_MAX_ATTEMPTS, NOTIFICATION_WEBHOOK_URL
from charity_hub.db.readers.notifications import get_notification, list_pending_notification_ids
from charity_hub.db.writers.notifications import insert_notification, update_notification
from charity_hub.metrics import notification_delivery_duration, notifications_delivered
from charity_hub.models.notifications import (
    NOTIFICATION_FAILED,
    NOTIFICATION_PENDING,
    NOTIFICATION_SENT,
)
from charity_hub.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 5

TEMPLATES: dict[str, str] = {
    "shift_signup_confirmation": (
        "Hi {first_name},\n\nYou're booked on {shift_title} on {shift_date} "
        "from {start_time} to {end_time} at {location}.\n\nThank you for volunteering!"
    ),
    "shift_cancellation": (
        "Hi {first_name},\n\nYour booking on {shift_title} on {shift_date} has been "
        "cancelled.\nReason: {reason}"
    ),
    "volunteer_approved": (
        "Hi {first_name},\n\nYour volunteer application has been approved. "
        "Sign in with {email} and the temporary password {temporary_password}, "
        "then change it from your profile."
    ),
    "volunteer_rejected": (
        "Hi {first_name},\n\nThank you for applying to volunteer with us. "
        "Unfortunately we can't take your application forward at this time.\n{reason}"
    ),
    "volunteer_welcome": (
        "Hi {first_name},\n\nWelcome to the volunteer team! Your account is now active "
        "and you can book shifts from your dashboard."
    ),
    "volunteer_archived": (
        "Hi {first_name},\n\nYour volunteer account has been archived.\n{reason}"
    ),
    "ticket_created": (
        "Hi {first_name},\n\nWe've received your support ticket {ticket_number}: "
        "{subject}. We'll be in touch soon."
    ),
    "export_ready": (
        "Hi {first_name},\n\nYour personal data export (request {request_id}) is ready "
        "to download."
    ),
}


class _BlankDefault(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass
class NotificationData:
    """A message to be sent to one recipient."""

    to: str
    subject: str
    template: str
    context: dict[str, Any] = field(default_factory=dict)
    user_id: Optional[int] = None


def render_template(template: str, context: dict[str, Any]) -> str:
    """
    Render a named template with the given context.

    Missing context keys render as empty strings.

    Raises:
        KeyError: If the template name is unknown
    """
    return TEMPLATES[template].format_map(_BlankDefault(context))


def enqueue_notification(conn: Connection, data: NotificationData) -> int:
    """
    Add a notification to the outbox in the caller's transaction.

    Args:
        conn: Connection inside the caller's transaction
        data: Recipient, subject, template and context

    Returns:
        int: Outbox row id, to be passed to ``deliver_notification`` after commit
    """
    if data.template not in TEMPLATES:
        raise ValueError(f"Unknown notification template: {data.template}")

    notification_id = insert_notification(
        conn,
        recipient=data.to,
        subject=data.subject,
        template=data.template,
        context=data.context,
        user_id=data.user_id,
    )
    logger.debug("notification_enqueued", notification_id=notification_id, template=data.template)
    return notification_id


def _send(recipient: str, subject: str, body: str, template: str) -> None:
    if NOTIFICATION_WEBHOOK_URL:
        res = requests.post(
            NOTIFICATION_WEBHOOK_URL,
            json={"to": recipient, "subject": subject, "body": body, "template": template},
            timeout=WEBHOOK_TIMEOUT_SECONDS,
        )
        res.raise_for_status()
    else:
        logger.info("email_sent", to=recipient, subject=subject, template=template, body=body)


def deliver_notification(engine: Engine, notification_id: int) -> Optional[str]:
    """
    Attempt delivery of one outbox row and record the outcome.

    Rows that are no longer pending are left untouched. Delivery errors are
    logged and recorded on the row; they are never raised.

    Args:
        engine: SQLAlchemy engine
        notification_id: Outbox row id

    Returns:
        Optional[str]: Resulting status, or None if the row does not exist
    """
    with engine.connect() as conn:
        row = get_notification(conn, notification_id)

    if row is None:
        logger.warning("notification_not_found", notification_id=notification_id)
        return None
    if row["status"] != NOTIFICATION_PENDING:
        return str(row["status"])

    attempts = int(row["attempts"]) + 1
    start = time.time()
    try:
        body = render_template(row["template"], row["context"] or {})
        _send(row["recipient"], row["subject"], body, row["template"])
    except (requests.RequestException, KeyError, ValueError) as e:
        status = NOTIFICATION_FAILED if attempts >= NOTIFICATION_MAX_ATTEMPTS else NOTIFICATION_PENDING
        with engine.begin() as conn:
            update_notification(
                conn,
                notification_id,
                {"status": status, "attempts": attempts, "last_error": str(e)[:1000]},
            )
        logger.warning(
            "notification_delivery_failed",
            notification_id=notification_id,
            template=row["template"],
            attempts=attempts,
            status=status,
            error=str(e),
        )
    else:
        status = NOTIFICATION_SENT
        with engine.begin() as conn:
            update_notification(
                conn,
                notification_id,
                {"status": status, "attempts": attempts, "sent_at": utc_now(), "last_error": None},
            )
        logger.info("notification_sent", notification_id=notification_id, template=row["template"])
    finally:
        notification_delivery_duration.observe(time.time() - start)

    notifications_delivered.labels(template=row["template"], status=status).inc()
    return status


def deliver_notifications(engine: Engine, notification_ids: list[int]) -> None:
    """
    Deliver several outbox rows; used as a post-commit background task.

    An unexpected error on one row is logged and does not stop the others.
    """
    for notification_id in notification_ids:
        try:
            deliver_notification(engine, notification_id)
        except Exception as e:
            logger.exception(
                "notification_dispatch_error", notification_id=notification_id, error=str(e)
            )


def retry_pending_notifications(engine: Engine, limit: int = 100) -> dict[str, int]:
    """
    Re-drive outbox rows that are still pending.

    Args:
        engine: SQLAlchemy engine
        limit: Maximum number of rows to attempt in one pass

    Returns:
        dict[str, int]: Count of rows per resulting status
    """
    with engine.connect() as conn:
        pending_ids = list_pending_notification_ids(conn, limit=limit)

    summary = {NOTIFICATION_SENT: 0, NOTIFICATION_PENDING: 0, NOTIFICATION_FAILED: 0}
    for notification_id in pending_ids:
        status = deliver_notification(engine, notification_id)
        if status in summary:
            summary[status] += 1

    logger.info("notification_retry_completed", attempted=len(pending_ids), **summary)
    return summary

