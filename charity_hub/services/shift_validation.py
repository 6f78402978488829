"""
Volunteer statistics, detailed shift validation and shift recommendations.

Statistics are recomputed from the volunteer's full assignment history on every
call. Nothing here is cached or stored incrementally.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from charity_hub.config import MAX_OPEN_SHIFTS
from charity_hub.db.readers.shifts import list_open_shifts, list_user_assignments
from charity_hub.db.readers.users import get_volunteer_profile
from charity_hub.models.shifts import (
    ACTIVE_ASSIGNMENT_STATUSES,
    ASSIGNMENT_COMPLETED,
    SHIFT_FLEXIBLE,
)
from charity_hub.services.shift_signup import check_eligibility
from charity_hub.utils.datetime import at_utc, hours_between, utc_now
from charity_hub.utils.serialize import serialize_shift

logger = structlog.get_logger(__name__)

RECOMMENDATION_POOL_SIZE = 10
RECOMMENDATION_LIMIT = 5
HIGH_IMPACT_ROLES = ("Food Distribution", "Community Outreach")


@dataclass
class VolunteerShiftInfo:
    current_shifts: int
    total_hours: float
    reliability_score: float
    skills_match: bool = False
    last_shift_date: Optional[str] = None


@dataclass
class ShiftRequirements:
    skills: list[str] = field(default_factory=list)
    minimum_age: int = 16
    physical_demands: Optional[str] = None
    background_check: bool = False
    special_training: list[str] = field(default_factory=list)


def split_csv(value: Optional[str]) -> list[str]:
    """Split a comma separated column into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def assignment_hours(assignment: dict[str, Any]) -> float:
    """
    Hours credited for a completed assignment.

    Logged hours win, then the booked duration, then the shift's own span.
    """
    if assignment["hours_logged"]:
        return float(assignment["hours_logged"])
    if assignment["duration"]:
        return float(assignment["duration"])
    return hours_between(assignment["shift_start_time"], assignment["shift_end_time"])


def reliability_score(assignments: list[dict[str, Any]]) -> float:
    """Completed assignments as a percentage of all assignments; 100 with no history."""
    if not assignments:
        return 100.0
    completed = sum(1 for a in assignments if a["status"] == ASSIGNMENT_COMPLETED)
    return round(completed / len(assignments) * 100, 1)


def volunteer_shift_info(
    conn: Connection, user_id: int, now: Optional[datetime] = None
) -> VolunteerShiftInfo:
    """
    Recompute a volunteer's running statistics from their assignment history.

    Args:
        conn: Active database connection
        user_id: Volunteer user ID
        now: Current time (aware, UTC); defaults to the wall clock

    Returns:
        VolunteerShiftInfo: open shift count, lifetime hours, reliability, last shift date
    """
    now = now or utc_now()
    history = list_user_assignments(conn, user_id)

    current = [
        a
        for a in history
        if a["status"] in ACTIVE_ASSIGNMENT_STATUSES
        and at_utc(a["shift_date"], a["shift_end_time"]) >= now
    ]
    completed = [a for a in history if a["status"] == ASSIGNMENT_COMPLETED]
    worked = [a for a in history if a["status"] in (*ACTIVE_ASSIGNMENT_STATUSES, ASSIGNMENT_COMPLETED)]

    return VolunteerShiftInfo(
        current_shifts=len(current),
        total_hours=round(sum(assignment_hours(a) for a in completed), 2),
        reliability_score=reliability_score(history),
        last_shift_date=max(a["shift_date"] for a in worked).isoformat() if worked else None,
    )


def parse_shift_requirements(shift: dict[str, Any]) -> ShiftRequirements:
    """Derive requirements from the shift's required skills and its role."""
    requirements = ShiftRequirements(skills=split_csv(shift.get("required_skills")))

    role = shift.get("role")
    if role == "Food Distribution":
        requirements.physical_demands = "Moderate - standing and lifting up to 25lbs"
        requirements.minimum_age = 16
    elif role == "Administrative Support":
        requirements.physical_demands = "Light - primarily seated work"
        requirements.minimum_age = 18
    elif role == "Driver":
        requirements.minimum_age = 21
        requirements.background_check = True
        requirements.special_training = ["Valid driver's license", "Clean driving record"]
    elif role == "Child Care":
        requirements.minimum_age = 18
        requirements.background_check = True
        requirements.special_training = ["Background check", "Child safety training"]
    else:
        requirements.physical_demands = "Variable"
        requirements.minimum_age = 16

    return requirements


def skills_match(volunteer_skills: Optional[str], required: list[str]) -> bool:
    """True when no skills are required or the volunteer has at least one of them."""
    if not required:
        return True
    have = (volunteer_skills or "").lower()
    return any(skill.lower() in have for skill in required)


def skill_suggestions(requirements: ShiftRequirements) -> list[str]:
    suggestions: list[str] = []
    if requirements.skills:
        suggestions.append("Consider developing these skills:")
        suggestions.extend(f"- {skill}" for skill in requirements.skills)
        suggestions.append("Look for training opportunities in your area")
    if requirements.background_check:
        suggestions.append("This role requires a background check")
        suggestions.append("Contact volunteer coordinator about background check process")
    if requirements.special_training:
        suggestions.append("Special requirements:")
        suggestions.extend(f"- {item}" for item in requirements.special_training)
    return suggestions


def validate_shift_detailed(
    conn: Connection, user_id: int, shift: dict[str, Any], now: Optional[datetime] = None
) -> dict[str, Any]:
    """
    Explain whether a volunteer could take a shift, without booking it.

    Runs the booking eligibility checks, then requirement matching and the
    open-shift limit, and returns the first reason the shift is unavailable
    along with the volunteer's statistics.

    Args:
        conn: Active database connection
        user_id: Volunteer user ID
        shift: Shift row
        now: Current time (aware, UTC); defaults to the wall clock

    Returns:
        dict: ``available`` flag plus reason, conflicts, suggestions,
        requirements and volunteer_info as applicable
    """
    now = now or utc_now()

    basic = check_eligibility(conn, user_id, shift, shift["start_time"], shift["end_time"], now=now)
    if not basic.eligible:
        return {
            "available": False,
            "reason": basic.reason,
            "code": basic.code,
            "conflicts": basic.conflicts,
            "suggestions": basic.suggestions,
        }

    if shift["type"] == SHIFT_FLEXIBLE and shift["flexible_slots_used"] >= shift["flexible_slots"]:
        return {
            "available": False,
            "reason": "flexible shift capacity reached",
            "code": "CAPACITY_FULL",
            "suggestions": ["Browse other available shifts"],
        }

    profile = get_volunteer_profile(conn, user_id)
    info = volunteer_shift_info(conn, user_id, now=now)
    requirements = parse_shift_requirements(shift)
    info.skills_match = skills_match(profile["skills"] if profile else None, requirements.skills)

    if not info.skills_match:
        return {
            "available": False,
            "reason": "You don't meet all requirements for this shift",
            "requirements": asdict(requirements),
            "volunteer_info": asdict(info),
            "suggestions": skill_suggestions(requirements),
        }

    if info.current_shifts >= MAX_OPEN_SHIFTS:
        return {
            "available": False,
            "reason": (
                f"You have reached the maximum number of concurrent shifts ({MAX_OPEN_SHIFTS})"
            ),
            "suggestions": [
                "Complete some of your current shifts before signing up for new ones",
                "Contact volunteer coordinator if you need to volunteer more frequently",
            ],
            "volunteer_info": asdict(info),
        }

    return {
        "available": True,
        "requirements": asdict(requirements),
        "volunteer_info": asdict(info),
        "suggestions": [
            "You're eligible for this shift!",
            "Remember to arrive 15 minutes early",
        ],
    }


def score_shift(
    shift: dict[str, Any],
    volunteer_skills: Optional[str],
    preferred_roles: list[str],
    now: datetime,
) -> dict[str, Any]:
    """
    Score one shift for a volunteer.

    Base 50, +20 for a skill match, +10 for a preferred role, +15 when the shift
    is within two days (+10 within a week) and +5 for a morning start (hour 09 to 12).
    """
    score = 50
    reasons: list[str] = []

    required = split_csv(shift.get("required_skills"))
    if required and skills_match(volunteer_skills, required):
        score += 20
        reasons.append("Matches your skills")

    if shift.get("role") and shift["role"].lower() in (r.lower() for r in preferred_roles):
        score += 10
        reasons.append("Matches your preferred role")

    days_until = (at_utc(shift["date"], shift["start_time"]) - now).total_seconds() / 86400
    if days_until <= 2:
        score += 15
        reasons.append("Urgent need")
    elif days_until <= 7:
        score += 10
        reasons.append("Starting soon")

    if 9 <= shift["start_time"].hour <= 12:
        score += 5
        reasons.append("Morning shift")

    if days_until <= 1:
        urgency = "urgent"
    elif days_until <= 3:
        urgency = "high"
    else:
        urgency = "medium"

    return {
        "shift": serialize_shift(shift),
        "score": score,
        "reasons": reasons or ["Available opportunity"],
        "urgency": urgency,
        "impact": "high" if shift.get("role") in HIGH_IMPACT_ROLES else "medium",
    }


def recommend_shifts(
    conn: Connection, user_id: int, now: Optional[datetime] = None
) -> dict[str, Any]:
    """
    Rank the next available shifts for a volunteer.

    Args:
        conn: Active database connection
        user_id: Volunteer user ID
        now: Current time (aware, UTC); defaults to the wall clock

    Returns:
        dict: ``recommendations`` (top five by score) and ``volunteer_info``
    """
    now = now or utc_now()
    profile = get_volunteer_profile(conn, user_id)

    upcoming = [
        shift
        for shift in list_open_shifts(conn, user_id, now.date())
        if at_utc(shift["date"], shift["start_time"]) > now
    ][:RECOMMENDATION_POOL_SIZE]

    scored = [
        score_shift(
            shift,
            profile["skills"] if profile else None,
            split_csv(profile["preferred_roles"]) if profile else [],
            now,
        )
        for shift in upcoming
    ]
    scored.sort(key=lambda rec: rec["score"], reverse=True)

    return {
        "recommendations": scored[:RECOMMENDATION_LIMIT],
        "volunteer_info": asdict(volunteer_shift_info(conn, user_id, now=now)),
    }
