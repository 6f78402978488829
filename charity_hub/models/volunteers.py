"""SQLAlchemy models for volunteer onboarding."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from charity_hub.models.base import Base

APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "approved"
APPLICATION_REJECTED = "rejected"


class VolunteerApplication(Base):
    """
    ORM model for a visitor's application to become a volunteer.

    Skills and availability are free text, comma separated. Approval turns the
    application into a ``User`` with the volunteer role plus a
    ``VolunteerProfile`` row.
    """

    __tablename__ = "volunteer_applications"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), nullable=True)
    skills = Column(Text, nullable=True)
    experience = Column(Text, nullable=True)
    availability = Column(Text, nullable=True)
    terms_accepted = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default=APPLICATION_PENDING, index=True)
    rejection_reason = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class VolunteerProfile(Base):
    """Volunteer-specific data attached one-to-one to an approved user."""

    __tablename__ = "volunteer_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    application_id = Column(
        Integer, ForeignKey("volunteer_applications.id", ondelete="SET NULL"), nullable=True
    )
    skills = Column(Text, nullable=True)
    experience = Column(Text, nullable=True)
    availability = Column(Text, nullable=True)
    preferred_roles = Column(Text, nullable=True)  # comma separated shift roles
    status = Column(String(20), nullable=False, default="active")
    notes = Column(Text, nullable=True)
    total_hours = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
