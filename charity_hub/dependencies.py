"""
FastAPI dependency injection providers.

Route handlers receive the database engine, the decoded bearer token and the
authenticated user through these providers. Each one can be replaced in tests
with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Any, Callable, Generator, Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.engine import Engine

from charity_hub.config import EXPORT_DIR, UPLOAD_DIR
from charity_hub.db.engine import engine
from charity_hub.db.readers.users import get_user_by_id, is_token_blacklisted
from charity_hub.errors import AuthenticationError, PermissionDeniedError
from charity_hub.models.users import ROLE_ADMIN, ROLE_SUPER_ADMIN, STATUS_ACTIVE
from charity_hub.security import decode_access_token
from charity_hub.services.storage import LocalFileStorage

logger = structlog.get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
        >>> client = TestClient(app)
    """
    yield engine


def get_upload_storage() -> LocalFileStorage:
    return LocalFileStorage(UPLOAD_DIR)


def get_export_storage() -> LocalFileStorage:
    return LocalFileStorage(EXPORT_DIR)


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Validate the bearer token on the request.

    Returns:
        dict: Decoded token claims

    Raises:
        AuthenticationError: Missing, malformed, expired or revoked token
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authorization header required")

    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.info("invalid_bearer_token", error=str(e))
        raise AuthenticationError("Invalid token")

    with db_engine.connect() as conn:
        if is_token_blacklisted(conn, claims["jti"]):
            raise AuthenticationError("Token has been revoked")

    return claims


def get_current_user(
    claims: dict[str, Any] = Depends(get_token_claims),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Load the active user behind the bearer token.

    Raises:
        AuthenticationError: Token subject is unknown or the account is inactive
    """
    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    with db_engine.connect() as conn:
        user = get_user_by_id(conn, user_id)

    if user is None or user["status"] != STATUS_ACTIVE:
        raise AuthenticationError("User not found or inactive")

    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user


def require_roles(*roles: str) -> Callable[..., dict[str, Any]]:
    """
    Build a dependency that admits only users holding one of ``roles``.

    ``super_admin`` passes any gate that admits ``admin``.

    Example:
        >>> @router.get("/admin/volunteers")
        >>> def list_volunteers(admin: dict = Depends(require_roles("admin"))):
        ...     ...
    """
    allowed = set(roles)
    if ROLE_ADMIN in allowed:
        allowed.add(ROLE_SUPER_ADMIN)

    def dependency(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
        if user["role"] not in allowed:
            logger.info("permission_denied", user_id=user["id"], role=user["role"])
            raise PermissionDeniedError("Insufficient permissions")
        return user

    return dependency


require_admin = require_roles(ROLE_ADMIN)
