from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class VolunteerApplicationPayload(BaseModel):
    """
    Schema for a public volunteer application.
    """

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    skills: Optional[str] = Field(None, description="Comma separated skills")
    experience: Optional[str] = None
    availability: Optional[str] = Field(None, description="Comma separated days or times")
    terms_accepted: bool = Field(..., description="Must be true to apply")


class ApplicationRejectPayload(BaseModel):
    reason: Optional[str] = Field(None, description="Shared with the applicant")


class BulkVolunteerAction(BaseModel):
    """
    Schema for applying one action to many volunteers or applications.

    ``approve`` and ``reject`` take application ids; ``archive`` and ``delete``
    take volunteer user ids.
    """

    action: str = Field(..., description="approve, reject, archive or delete")
    volunteer_ids: list[int] = Field(..., min_length=1)
    reason: Optional[str] = None
    notes: Optional[str] = None
    send_email: bool = False
    override_rules: bool = Field(False, description="Required for delete")


class BulkFailure(BaseModel):
    volunteer_id: int
    reason: str


class BulkActionResult(BaseModel):
    action: str
    successful: int
    failed: list[BulkFailure]
