from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, model_validator

from assignment_hub.core.enums import ActionType


class TeachingAssignmentCreate(BaseModel):
    class_id: UUID
    subject_id: UUID
    teacher_id: UUID


class TeachingAssignmentResponse(BaseModel):
    id: UUID
    class_id: UUID
    subject_id: UUID
    teacher_id: UUID
    created_at: datetime
    updated_at: datetime
    class_name: Optional[str] = None
    subject_name: Optional[str] = None
    teacher_name: Optional[str] = None

    class Config:
        from_attributes = True


class AssignmentAction(BaseModel):
    """One batch operation. create needs data; update needs assignment_id and data; delete needs assignment_id."""

    type: ActionType
    assignment_id: Optional[UUID] = None
    data: Optional[TeachingAssignmentCreate] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "AssignmentAction":
        if self.type in (ActionType.UPDATE, ActionType.DELETE) and self.assignment_id is None:
            raise ValueError(f"{self.type.value} action requires assignment_id")
        if self.type in (ActionType.CREATE, ActionType.UPDATE) and self.data is None:
            raise ValueError(f"{self.type.value} action requires data")
        return self


class AssignmentBatchRequest(BaseModel):
    actions: List[AssignmentAction]


class AssignmentBatchResponse(BaseModel):
    task_id: str
    status: str
