from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from charity_hub.models.users import ROLE_VOLUNTEER, STATUS_ACTIVE, TokenBlacklist, User
from charity_hub.models.volunteers import VolunteerProfile

users = User.__table__
profiles = VolunteerProfile.__table__
token_blacklist = TokenBlacklist.__table__


def get_user_by_id(conn: Connection, user_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch a user row by primary key.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        user_id (int): User ID

    Returns:
        Optional[dict[str, Any]]: User row as a dict, or None if not found
    """
    row = conn.execute(select(users).where(users.c.id == user_id)).mappings().fetchone()
    return dict(row) if row else None


def get_user_by_email(conn: Connection, email: str) -> Optional[dict[str, Any]]:
    """
    Fetch a user row by email address (case-insensitive).

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        email (str): Email address

    Returns:
        Optional[dict[str, Any]]: User row as a dict, or None if not found
    """
    row = (
        conn.execute(select(users).where(func.lower(users.c.email) == email.strip().lower()))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def is_token_blacklisted(conn: Connection, token_id: str) -> bool:
    """Check whether a token id (JWT ``jti``) has been revoked."""
    result = conn.execute(
        select(token_blacklist.c.id).where(token_blacklist.c.token_id == token_id)
    )
    return result.first() is not None


def get_volunteer_profile(conn: Connection, user_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(profiles).where(profiles.c.user_id == user_id)).mappings().fetchone()
    )
    return dict(row) if row else None


def list_active_volunteers(conn: Connection) -> list[dict[str, Any]]:
    """
    List active volunteer accounts joined with their profile data.

    Returns:
        list[dict[str, Any]]: One dict per volunteer, ordered by last then first name
    """
    stmt = (
        select(
            users.c.id,
            users.c.first_name,
            users.c.last_name,
            users.c.email,
            users.c.phone,
            users.c.status,
            profiles.c.skills,
            profiles.c.availability,
            profiles.c.preferred_roles,
            profiles.c.total_hours,
        )
        .select_from(users.outerjoin(profiles, profiles.c.user_id == users.c.id))
        .where(users.c.role == ROLE_VOLUNTEER, users.c.status == STATUS_ACTIVE)
        .order_by(users.c.last_name, users.c.first_name)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def count_active_volunteers(conn: Connection) -> int:
    stmt = select(func.count()).where(
        users.c.role == ROLE_VOLUNTEER, users.c.status == STATUS_ACTIVE
    )
    return int(conn.execute(stmt).scalar_one())
