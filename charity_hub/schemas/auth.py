from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class RegisterPayload(BaseModel):
    """
    Schema for self-service registration. Staff and volunteer accounts are
    created by admins or through the application flow, not here.
    """

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, description="At least 8 characters")
    phone: Optional[str] = Field(None, max_length=50)
    role: str = Field("visitor", description="visitor or donor")


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    user: dict
