from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    name: str = Field(..., max_length=50)
    grade_level: Optional[int] = None
    academic_year: Optional[str] = Field(None, max_length=20)
    display_order: Optional[int] = None


class ClassResponse(BaseModel):
    id: UUID
    name: str
    grade_level: Optional[int] = None
    academic_year: Optional[str] = None
    display_order: Optional[int] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
