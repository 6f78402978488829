"""SQLAlchemy models for volunteer shifts and bookings."""

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, Time
from sqlalchemy.sql import func

from charity_hub.models.base import Base

SHIFT_FIXED = "fixed"
SHIFT_FLEXIBLE = "flexible"
SHIFT_OPEN = "open"
SHIFT_TYPES = (SHIFT_FIXED, SHIFT_FLEXIBLE, SHIFT_OPEN)

ASSIGNMENT_CONFIRMED = "Confirmed"
ASSIGNMENT_ASSIGNED = "Assigned"
ASSIGNMENT_CANCELLED = "Cancelled"
ASSIGNMENT_COMPLETED = "Completed"
ASSIGNMENT_NO_SHOW = "NoShow"

# Statuses that hold a place on a shift
ACTIVE_ASSIGNMENT_STATUSES = (ASSIGNMENT_CONFIRMED, ASSIGNMENT_ASSIGNED)


class Shift(Base):
    """
    ORM model for a volunteer shift.

    ``date``/``start_time``/``end_time`` are wall-clock values interpreted as UTC.
    A fixed (or open) shift has a single assignee recorded in
    ``assigned_volunteer_id``. A flexible shift publishes a window and
    ``flexible_slots`` places; volunteers pick a custom range inside the window
    and ``flexible_slots_used`` counts bookings.
    """

    __tablename__ = "shifts"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    role = Column(String(100), nullable=True)
    required_skills = Column(Text, nullable=True)
    max_volunteers = Column(Integer, nullable=False, default=1)
    type = Column(String(20), nullable=False, default=SHIFT_FIXED)
    assigned_volunteer_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    flexible_slots = Column(Integer, nullable=False, default=0)
    flexible_slots_used = Column(Integer, nullable=False, default=0)
    minimum_hours = Column(Float, nullable=True)
    maximum_hours = Column(Float, nullable=True)
    time_slot_interval = Column(Integer, nullable=False, default=30)  # minutes
    break_duration = Column(Integer, nullable=False, default=15)  # minutes
    priority = Column(String(20), nullable=False, default="normal")
    tags = Column(Text, nullable=True)
    equipment = Column(Text, nullable=True)
    accessibility_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ShiftAssignment(Base):
    """
    ORM model for one volunteer's booking on a shift.

    Flexible bookings carry ``custom_start_time``/``custom_end_time`` and the
    committed ``duration`` in hours. Cancellation and no-show details are kept
    on the row so reliability can be recomputed from history.
    """

    __tablename__ = "shift_assignments"

    id = Column(Integer, primary_key=True)
    shift_id = Column(
        Integer, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default=ASSIGNMENT_CONFIRMED)
    assigned_at = Column(DateTime(timezone=True), nullable=False)
    assigned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    custom_start_time = Column(Time, nullable=True)
    custom_end_time = Column(Time, nullable=True)
    duration = Column(Float, nullable=False, default=0)  # hours

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    hours_notice = Column(Float, nullable=True)

    hours_logged = Column(Float, nullable=False, default=0)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    no_show_reason = Column(Text, nullable=True)
    no_show_recorded_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
