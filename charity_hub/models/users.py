"""SQLAlchemy models for platform accounts and revoked tokens."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from charity_hub.models.base import Base

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_VOLUNTEER = "volunteer"
ROLE_DONOR = "donor"
ROLE_VISITOR = "visitor"

ADMIN_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN)

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"


class User(Base):
    """
    ORM model for every account on the platform.

    Admins, staff, volunteers, donors and visitors share this table and are
    told apart by ``role``. ``status`` gates login; archived volunteers are
    flipped to ``inactive`` rather than removed.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default=ROLE_VISITOR, index=True)
    status = Column(String(50), nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class TokenBlacklist(Base):
    """Bearer tokens revoked before their natural expiry (logout)."""

    __tablename__ = "token_blacklist"

    id = Column(Integer, primary_key=True)
    token_id = Column(String(64), nullable=False, unique=True, index=True)  # JWT jti claim
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    reason = Column(Text, nullable=True)
    blacklisted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
