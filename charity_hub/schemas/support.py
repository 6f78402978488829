from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

TicketPriority = Literal["low", "medium", "high", "urgent"]
TicketStatus = Literal["open", "in_progress", "resolved", "closed"]
HelpRequestStatus = Literal["pending", "approved", "rejected", "fulfilled", "cancelled"]


class TicketCreatePayload(BaseModel):
    """
    Schema for raising a support ticket.
    """

    subject: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=50)
    priority: TicketPriority = "medium"


class TicketUpdatePayload(BaseModel):
    """
    Schema for an admin working a ticket. Moving to ``resolved`` stamps
    ``resolved_at``.
    """

    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assignee_id: Optional[int] = None


class HelpRequestPayload(BaseModel):
    category: str = Field(..., min_length=1, max_length=50)
    details: Optional[str] = None
    visit_date: Optional[date] = None


class HelpRequestUpdatePayload(BaseModel):
    status: HelpRequestStatus
    staff_notes: Optional[str] = None
