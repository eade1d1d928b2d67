from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class TeacherCreate(BaseModel):
    login_id: str = Field(..., max_length=100)
    full_name: str = Field(..., max_length=255)


class TeacherResponse(BaseModel):
    id: UUID
    login_id: str
    full_name: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
