from typing import Optional

from pydantic import BaseModel, Field


class DeletionRequestPayload(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)
