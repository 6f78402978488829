"""
Password hashing and bearer token helpers.

Passwords are hashed with bcrypt. Access tokens are HS256 JWTs carrying the
user id (``sub``), role, a unique token id (``jti``) used for revocation, and
an expiry.
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta
from typing import Any

import bcrypt
import jwt

from charity_hub.config import ACCESS_TOKEN_TTL_MINUTES, JWT_ALGORITHM, JWT_SECRET
from charity_hub.utils.datetime import utc_now


def hash_password(password: str) -> str:
    """
    Hash a plaintext password with a fresh bcrypt salt.

    Args:
        password: Plaintext password

    Returns:
        str: bcrypt hash suitable for storing in ``users.password_hash``
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if ``password`` matches the stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def generate_temporary_password() -> str:
    return secrets.token_urlsafe(12)


def create_access_token(
    user_id: int, role: str, ttl_minutes: int = ACCESS_TOKEN_TTL_MINUTES
) -> tuple[str, str, datetime]:
    """
    Issue a signed access token for a user.

    Args:
        user_id: ID of the authenticated user
        role: User role embedded as a claim for route gating
        ttl_minutes: Token lifetime in minutes

    Returns:
        tuple: (encoded token, jti, expiry datetime)
    """
    jti = uuid.uuid4().hex
    expires_at = utc_now() + timedelta(minutes=ttl_minutes)
    payload = {
        "sub": str(user_id),
        "role": role,
        "jti": jti,
        "iat": utc_now(),
        "exp": expires_at,
    }
    token = jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)
    return token, jti, expires_at


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Validate signature and expiry of an access token.

    Args:
        token: Encoded JWT from the Authorization header

    Returns:
        dict: Decoded claims

    Raises:
        jwt.InvalidTokenError: If the token is malformed, tampered with, expired,
            or missing a required claim
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
        options={"require": ["sub", "jti", "exp"]},
    )
