from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SubjectCreate(BaseModel):
    name: str = Field(..., max_length=255)
    code: str = Field(..., max_length=50)
    display_order: Optional[int] = None


class SubjectResponse(BaseModel):
    id: UUID
    name: str
    code: str
    display_order: Optional[int] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
