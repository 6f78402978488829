from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from charity_hub.db.readers.users import get_user_by_email
from charity_hub.db.writers.users import blacklist_token, insert_user
from charity_hub.dependencies import get_current_user, get_db_engine, get_token_claims
from charity_hub.errors import AppError, AuthenticationError, ConflictError, InvalidInputError
from charity_hub.models.users import ROLE_DONOR, ROLE_VISITOR, STATUS_ACTIVE
from charity_hub.schemas.auth import LoginPayload, RegisterPayload
from charity_hub.security import create_access_token, hash_password, verify_password
from charity_hub.utils.serialize import serialize_row

logger = structlog.get_logger(__name__)
router = APIRouter()

SELF_SERVICE_ROLES = (ROLE_VISITOR, ROLE_DONOR)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return serialize_row(user, exclude=("password_hash",))


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterPayload,
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a visitor or donor account.

    Args:
        payload: Name, email, password and requested role

    Returns:
        dict: The new user's id and role
    """
    if payload.role not in SELF_SERVICE_ROLES:
        raise InvalidInputError("role must be visitor or donor")

    try:
        with db_engine.begin() as conn:
            if get_user_by_email(conn, payload.email) is not None:
                raise ConflictError("Email already registered")

            user_id = insert_user(
                conn,
                {
                    "first_name": payload.first_name.strip(),
                    "last_name": payload.last_name.strip(),
                    "email": payload.email,
                    "phone": payload.phone,
                    "password_hash": hash_password(payload.password),
                    "role": payload.role,
                    "status": STATUS_ACTIVE,
                },
            )

        logger.info("user_registered", user_id=user_id, role=payload.role)
        return {"message": "Registration successful", "user_id": user_id, "role": payload.role}

    except AppError:
        raise
    except Exception as e:
        logger.exception("user_registration_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/auth/login")
def login(
    payload: LoginPayload,
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Exchange email and password for a bearer token.

    Returns:
        dict: access_token, token_type, expires_at and the user
    """
    with db_engine.connect() as conn:
        user = get_user_by_email(conn, payload.email)

    if user is None or not verify_password(payload.password, user["password_hash"]):
        logger.info("login_failed", reason="bad_credentials")
        raise AuthenticationError("Invalid email or password")
    if user["status"] != STATUS_ACTIVE:
        logger.info("login_failed", reason="inactive", user_id=user["id"])
        raise AuthenticationError("Account inactive")

    token, _, expires_at = create_access_token(user["id"], user["role"])
    logger.info("user_logged_in", user_id=user["id"], role=user["role"])
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_at": expires_at.isoformat(),
        "user": public_user(user),
    }


@router.post("/auth/logout")
def logout(
    claims: dict[str, Any] = Depends(get_token_claims),
    db_engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """
    Revoke the bearer token used for this request.
    """
    try:
        with db_engine.begin() as conn:
            blacklist_token(conn, claims["jti"], int(claims["sub"]), reason="logout")
    except Exception as e:
        logger.exception("logout_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("user_logged_out", user_id=claims["sub"])
    return {"message": "Logged out successfully"}


@router.get("/auth/me")
def me(user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": public_user(user)}
