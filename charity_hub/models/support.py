"""SQLAlchemy models for support tickets and visitor help requests."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from charity_hub.models.base import Base

TICKET_STATUSES = ("open", "in_progress", "resolved", "closed")
TICKET_PRIORITIES = ("low", "medium", "high", "urgent")

HELP_REQUEST_STATUSES = ("pending", "approved", "rejected", "fulfilled", "cancelled")


class SupportTicket(Base):
    """A support ticket raised by any signed-in user and worked by admins."""

    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True)
    ticket_number = Column(String(40), nullable=False, unique=True)
    subject = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    priority = Column(String(20), nullable=False, default="medium")
    status = Column(String(20), nullable=False, default="open", index=True)
    requester_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class HelpRequest(Base):
    """A visitor's request for assistance (food parcel, advice, etc.)."""

    __tablename__ = "help_requests"

    id = Column(Integer, primary_key=True)
    reference = Column(String(40), nullable=False, unique=True)
    visitor_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    visit_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    staff_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
