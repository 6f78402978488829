from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FlexibleTimeSelection(BaseModel):
    """
    A volunteer's chosen range inside a flexible shift window.
    """

    model_config = ConfigDict(populate_by_name=True)

    start_time: str = Field(..., alias="startTime", description="Start of the range, HH:MM")
    end_time: str = Field(..., alias="endTime", description="End of the range, HH:MM")
    duration: float = Field(..., description="Committed hours; must match end - start")


class ShiftSignupRequest(BaseModel):
    """
    Schema for signing up to a shift. The body is optional for fixed shifts.
    """

    model_config = ConfigDict(populate_by_name=True)

    flexible_time: Optional[FlexibleTimeSelection] = Field(None, alias="flexibleTime")


class ShiftCancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, description="Why the volunteer is cancelling")


class ShiftCreatePayload(BaseModel):
    """
    Schema for creating a fixed (or open) shift.
    """

    date: str = Field(..., description="Shift date, YYYY-MM-DD")
    start_time: str = Field(..., description="Start time, HH:MM")
    end_time: str = Field(..., description="End time, HH:MM")
    location: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    role: Optional[str] = Field(None, description="Shift role, e.g. Food Distribution")
    required_skills: Optional[str] = Field(None, description="Comma separated skills")
    max_volunteers: int = Field(1, description="Clamped to 1..50")
    type: str = Field("fixed", description="fixed or open; anything else is treated as fixed")


class FlexibleShiftCreatePayload(ShiftCreatePayload):
    """
    Schema for creating a flexible shift: a window with bookable slots.
    """

    type: str = Field("flexible")
    flexible_slots: int = Field(..., ge=1, description="Number of volunteers that can book")
    minimum_hours: float = Field(..., ge=0.5, description="Shortest allowed commitment")
    maximum_hours: float = Field(..., description="Longest allowed commitment")
    time_slot_interval: int = Field(30, description="Slot granularity in minutes, 15..60")
    break_duration: int = Field(15, ge=0, description="Break length in minutes")
    priority: str = Field("normal")
    tags: list[str] = Field(default_factory=list)
    equipment: Optional[str] = None
    accessibility_notes: Optional[str] = None


class ShiftUpdatePayload(BaseModel):
    """
    Schema for updating a shift. All fields are optional.
    """

    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    role: Optional[str] = None
    required_skills: Optional[str] = None
    max_volunteers: Optional[int] = None
    minimum_hours: Optional[float] = None
    maximum_hours: Optional[float] = None
    priority: Optional[str] = None


class CapacityUpdatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    flexible_slots: int = Field(..., ge=1, alias="flexibleSlots")


class CompleteAssignmentPayload(BaseModel):
    hours_logged: Optional[float] = Field(
        None, ge=0, description="Hours worked; defaults to the booked span"
    )


class NoShowPayload(BaseModel):
    reason: Optional[str] = None
