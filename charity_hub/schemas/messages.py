from pydantic import BaseModel, Field


class MessageCreatePayload(BaseModel):
    recipient_id: int = Field(..., description="User receiving the message")
    content: str = Field(..., min_length=1, max_length=5000)
