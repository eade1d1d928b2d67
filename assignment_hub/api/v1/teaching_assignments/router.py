from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assignment_hub.api.v1.notifications.hub import NotificationHub, get_notification_hub
from assignment_hub.core.config import settings
from assignment_hub.core.exceptions import ServiceError
from assignment_hub.db.session import get_db, get_session_factory

from .batch import process_bulk_task
from .schemas import (
    AssignmentBatchRequest,
    AssignmentBatchResponse,
    TeachingAssignmentCreate,
    TeachingAssignmentResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/teaching-assignments", tags=["teaching-assignments"])


@router.post(
    "",
    response_model=TeachingAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_teaching_assignment(
    payload: TeachingAssignmentCreate,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.create_teaching_assignment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[TeachingAssignmentResponse])
async def list_teaching_assignments(
    limit: int = Query(settings.list_fetch_limit, ge=1, le=settings.list_max_limit),
    class_id: Optional[UUID] = Query(None),
    teacher_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await service.list_teaching_assignments(db, limit, class_id=class_id, teacher_id=teacher_id)


@router.post(
    "/batch",
    response_model=AssignmentBatchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def batch_update_teaching_assignments(
    payload: AssignmentBatchRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    hub: NotificationHub = Depends(get_notification_hub),
):
    """Queue create/update/delete actions as one bulk task. Track it via /api/v1/tasks/{task_id} or the push channel."""
    try:
        task = await service.create_bulk_task(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    background_tasks.add_task(process_bulk_task, session_factory, hub, task.id, payload.actions)
    return AssignmentBatchResponse(task_id=str(task.id), status=task.status)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_teaching_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    deleted = await service.delete_teaching_assignment(db, assignment_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
