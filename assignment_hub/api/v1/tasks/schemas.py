"""Task status payloads and the push events broadcast while a bulk task runs."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class TaskStatusResponse(BaseModel):
    task_id: str
    status: str
    processed: int = 0
    total: int = 0
    success: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
    details: Optional[Dict[str, Any]] = None


class BulkUpdateProgressEvent(BaseModel):
    type: Literal["bulk_update_progress"] = "bulk_update_progress"
    task_id: str
    processed: int
    total: int
    success: int
    failed: int
    errors: List[str] = Field(default_factory=list)


class BulkUpdateCompleteEvent(BaseModel):
    type: Literal["bulk_update_complete"] = "bulk_update_complete"
    task_id: str
    status: str
    details: Optional[Dict[str, Any]] = None
