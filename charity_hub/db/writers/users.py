from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from charity_hub.models.users import TokenBlacklist, User
from charity_hub.models.volunteers import VolunteerProfile
from charity_hub.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

users = User.__table__
profiles = VolunteerProfile.__table__
token_blacklist = TokenBlacklist.__table__


def insert_user(conn: Connection, values: dict[str, Any]) -> int:
    """
    Insert a user row.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        values (dict[str, Any]): Column values; ``email`` is normalised to lower case.

    Returns:
        int: New user id
    """
    now = utc_now()
    row = {**values, "email": values["email"].strip().lower(), "created_at": now, "updated_at": now}
    result = conn.execute(insert(users).values(**row))
    user_id = int(result.inserted_primary_key[0])
    logger.info("user_created", user_id=user_id, role=row.get("role"))
    return user_id


def update_user(conn: Connection, user_id: int, values: dict[str, Any]) -> None:
    conn.execute(
        update(users).where(users.c.id == user_id).values(**values, updated_at=utc_now())
    )


def delete_user(conn: Connection, user_id: int) -> None:
    """Hard delete a user and the profile row attached to it."""
    conn.execute(delete(profiles).where(profiles.c.user_id == user_id))
    conn.execute(delete(users).where(users.c.id == user_id))
    logger.info("user_deleted", user_id=user_id)


def blacklist_token(
    conn: Connection, token_id: str, user_id: Optional[int], reason: str = "logout"
) -> None:
    """
    Revoke a token by its ``jti``.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        token_id (str): JWT ``jti`` claim
        user_id (Optional[int]): Owner of the token
        reason (str): Why the token was revoked
    """
    conn.execute(
        insert(token_blacklist).values(
            token_id=token_id, user_id=user_id, reason=reason, blacklisted_at=utc_now()
        )
    )


def upsert_volunteer_profile(conn: Connection, user_id: int, values: dict[str, Any]) -> None:
    """
    Create the volunteer profile for ``user_id`` or refresh the existing one.

    Args:
        conn (Connection): Connection inside the caller's transaction.
        user_id (int): Owning user
        values (dict[str, Any]): Profile columns to set
    """
    now = utc_now()
    result = conn.execute(
        update(profiles).where(profiles.c.user_id == user_id).values(**values, updated_at=now)
    )
    if result.rowcount == 0:
        conn.execute(
            insert(profiles).values(user_id=user_id, created_at=now, updated_at=now, **values)
        )


def add_volunteer_hours(conn: Connection, user_id: int, hours: float) -> None:
    conn.execute(
        update(profiles)
        .where(profiles.c.user_id == user_id)
        .values(total_hours=profiles.c.total_hours + hours, updated_at=utc_now())
    )
