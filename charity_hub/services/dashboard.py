"""Dashboard statistics for volunteers and administrators."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy.engine import Connection

from charity_hub.db.readers.applications import count_applications
from charity_hub.db.readers.notifications import count_notifications
from charity_hub.db.readers.shifts import count_shifts_from, list_user_assignments
from charity_hub.db.readers.support import count_help_requests, count_open_tickets
from charity_hub.db.readers.users import count_active_volunteers
from charity_hub.models.notifications import NOTIFICATION_FAILED
from charity_hub.models.shifts import (
    ACTIVE_ASSIGNMENT_STATUSES,
    ASSIGNMENT_CANCELLED,
    ASSIGNMENT_COMPLETED,
    ASSIGNMENT_NO_SHOW,
)
from charity_hub.models.volunteers import APPLICATION_PENDING
from charity_hub.services.shift_validation import assignment_hours, reliability_score
from charity_hub.utils.datetime import at_utc, hours_between, utc_now
from charity_hub.utils.serialize import shift_title

PEOPLE_HELPED_PER_SHIFT = 3
RECENT_ACTIVITY_LIMIT = 10


def volunteer_level(total_hours: float) -> str:
    if total_hours >= 100:
        return "Experienced Volunteer"
    if total_hours >= 50:
        return "Active Volunteer"
    if total_hours >= 20:
        return "Regular Volunteer"
    return "New Volunteer"


def impact_score(reliability: float, shifts_completed: int) -> float:
    """Impact on a 0 to 5 scale from reliability and completed shift count."""
    if reliability <= 0:
        return 0.0
    return round(min(5.0, reliability / 100 * 5 + shifts_completed / 20 * 2), 2)


def next_milestone(shifts_completed: int) -> tuple[str, int]:
    """
    Name of the next milestone and the percentage progress towards it.

    Milestones sit at 1, 10, 20 and 50 completed shifts.
    """
    if shifts_completed >= 50:
        return "Leadership Badge", 85
    if shifts_completed >= 20:
        return "Community Champion", int((shifts_completed - 20) / 30 * 100)
    if shifts_completed >= 10:
        return "Regular Volunteer", int((shifts_completed - 10) / 10 * 100)
    if shifts_completed >= 1:
        return "Active Volunteer", int(shifts_completed / 10 * 100)
    return "First Shift", 0


def volunteer_dashboard_stats(
    conn: Connection, user_id: int, now: Optional[datetime] = None
) -> dict[str, Any]:
    """
    Build the volunteer dashboard summary from assignment history.

    Args:
        conn: Active database connection
        user_id: Volunteer user ID
        now: Current time (aware, UTC); defaults to the wall clock

    Returns:
        dict: Upcoming shifts, hours, reliability, level, impact and milestone figures
    """
    now = now or utc_now()
    history = list_user_assignments(conn, user_id)

    completed = [a for a in history if a["status"] == ASSIGNMENT_COMPLETED]
    upcoming = [
        a
        for a in history
        if a["status"] in ACTIVE_ASSIGNMENT_STATUSES
        and at_utc(a["shift_date"], a["shift_start_time"]) >= now
    ]

    hours_this_month = 0.0
    for a in history:
        shift_day = a["shift_date"]
        if (shift_day.year, shift_day.month) != (now.year, now.month):
            continue
        if a["status"] == ASSIGNMENT_COMPLETED:
            hours_this_month += assignment_hours(a)
        elif a["status"] in ACTIVE_ASSIGNMENT_STATUSES:
            hours_this_month += a["duration"] or hours_between(
                a["shift_start_time"], a["shift_end_time"]
            )

    total_hours = round(sum(assignment_hours(a) for a in completed), 2)
    reliability = reliability_score(history)
    milestone, progress = next_milestone(len(completed))

    recent = sorted(completed, key=lambda a: (a["shift_date"], a["shift_start_time"]), reverse=True)
    recent_activity = [
        {
            "id": a["shift_id"],
            "type": "shift_completed",
            "description": f"Completed {shift_title(a)} shift",
            "date": a["shift_date"].isoformat(),
            "hours": assignment_hours(a),
        }
        for a in recent[:RECENT_ACTIVITY_LIMIT]
    ]

    return {
        "upcoming_shifts": len(upcoming),
        "hours_this_month": round(hours_this_month, 2),
        "total_hours": total_hours,
        "shifts_completed": len(completed),
        "people_helped": len(completed) * PEOPLE_HELPED_PER_SHIFT,
        "reliability_score": reliability,
        "level": volunteer_level(total_hours),
        "impact_score": impact_score(reliability, len(completed)),
        "next_milestone": milestone,
        "milestone_progress": progress,
        "cancelled_shifts": sum(1 for a in history if a["status"] == ASSIGNMENT_CANCELLED),
        "no_shows": sum(1 for a in history if a["status"] == ASSIGNMENT_NO_SHOW),
        "recent_activity": recent_activity,
    }


def admin_dashboard_stats(conn: Connection, now: Optional[datetime] = None) -> dict[str, int]:
    """Headline counts for the admin dashboard."""
    now = now or utc_now()
    return {
        "pending_applications": count_applications(conn, APPLICATION_PENDING),
        "active_volunteers": count_active_volunteers(conn),
        "upcoming_shifts": count_shifts_from(conn, now.date()),
        "open_tickets": count_open_tickets(conn),
        "pending_help_requests": count_help_requests(conn, "pending"),
        "failed_notifications": count_notifications(conn, NOTIFICATION_FAILED),
    }
