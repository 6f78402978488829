from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class TaskCreatePayload(BaseModel):
    """
    Schema for an admin assigning a task to a volunteer.
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    assigned_user_id: int = Field(..., description="Volunteer user ID")
    priority: Literal["low", "medium", "high"] = "medium"
    due_date: Optional[datetime] = None
    estimated_hours: Optional[float] = Field(None, ge=0)


class TaskUpdatePayload(BaseModel):
    """
    Schema for a volunteer progressing their own task. All fields are optional.
    """

    status: Optional[Literal["pending", "in_progress", "completed"]] = None
    actual_hours: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
