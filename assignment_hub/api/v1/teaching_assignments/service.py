from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from assignment_hub.core.enums import ActionType, TaskStatus
from assignment_hub.core.exceptions import ServiceError
from assignment_hub.core.models import BulkTask, SchoolClass, Subject, Teacher, TeachingAssignment

from .schemas import (
    AssignmentAction,
    AssignmentBatchRequest,
    TeachingAssignmentCreate,
    TeachingAssignmentResponse,
)


def _to_response(t: TeachingAssignment, with_names: bool = False) -> TeachingAssignmentResponse:
    return TeachingAssignmentResponse(
        id=t.id,
        class_id=t.class_id,
        subject_id=t.subject_id,
        teacher_id=t.teacher_id,
        created_at=t.created_at,
        updated_at=t.updated_at,
        class_name=t.school_class.name if with_names and t.school_class else None,
        subject_name=t.subject.name if with_names and t.subject else None,
        teacher_name=t.teacher.full_name if with_names and t.teacher else None,
    )


async def _validate_teacher(db: AsyncSession, teacher_id: UUID) -> None:
    teacher = await db.get(Teacher, teacher_id)
    if not teacher or not teacher.is_active:
        raise ServiceError("Invalid teacher", status.HTTP_400_BAD_REQUEST)


async def _validate_create(db: AsyncSession, payload: TeachingAssignmentCreate) -> None:
    cl = await db.get(SchoolClass, payload.class_id)
    if not cl:
        raise ServiceError("Invalid class", status.HTTP_400_BAD_REQUEST)
    subj = await db.get(Subject, payload.subject_id)
    if not subj:
        raise ServiceError("Invalid subject", status.HTTP_400_BAD_REQUEST)
    await _validate_teacher(db, payload.teacher_id)
    existing = await db.execute(
        select(TeachingAssignment.id).where(
            TeachingAssignment.class_id == payload.class_id,
            TeachingAssignment.subject_id == payload.subject_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ServiceError("This class already has a teacher for this subject", status.HTTP_409_CONFLICT)


async def _get_assignment(db: AsyncSession, assignment_id: UUID) -> TeachingAssignment:
    obj = await db.get(TeachingAssignment, assignment_id)
    if not obj:
        raise ServiceError("Assignment not found", status.HTTP_404_NOT_FOUND)
    return obj


async def apply_action(db: AsyncSession, action: AssignmentAction) -> None:
    """Apply one batch action to the session without committing. Raises ServiceError when it cannot apply."""
    if action.type == ActionType.CREATE:
        await _validate_create(db, action.data)
        db.add(
            TeachingAssignment(
                class_id=action.data.class_id,
                subject_id=action.data.subject_id,
                teacher_id=action.data.teacher_id,
            )
        )
    elif action.type == ActionType.UPDATE:
        obj = await _get_assignment(db, action.assignment_id)
        if obj.class_id != action.data.class_id or obj.subject_id != action.data.subject_id:
            raise ServiceError("Assignment does not belong to this class and subject", status.HTTP_400_BAD_REQUEST)
        await _validate_teacher(db, action.data.teacher_id)
        obj.teacher_id = action.data.teacher_id
    else:
        obj = await _get_assignment(db, action.assignment_id)
        await db.delete(obj)
    await db.flush()


async def create_teaching_assignment(
    db: AsyncSession,
    payload: TeachingAssignmentCreate,
) -> TeachingAssignmentResponse:
    try:
        await apply_action(db, AssignmentAction(type=ActionType.CREATE, data=payload))
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("This class already has a teacher for this subject", status.HTTP_409_CONFLICT)
    result = await db.execute(
        select(TeachingAssignment).where(
            TeachingAssignment.class_id == payload.class_id,
            TeachingAssignment.subject_id == payload.subject_id,
        )
    )
    return _to_response(result.scalar_one())


async def list_teaching_assignments(
    db: AsyncSession,
    limit: int,
    class_id: Optional[UUID] = None,
    teacher_id: Optional[UUID] = None,
) -> List[TeachingAssignmentResponse]:
    stmt = select(TeachingAssignment).options(
        selectinload(TeachingAssignment.school_class),
        selectinload(TeachingAssignment.subject),
        selectinload(TeachingAssignment.teacher),
    )
    if class_id is not None:
        stmt = stmt.where(TeachingAssignment.class_id == class_id)
    if teacher_id is not None:
        stmt = stmt.where(TeachingAssignment.teacher_id == teacher_id)
    stmt = stmt.order_by(TeachingAssignment.created_at, TeachingAssignment.id).limit(limit)
    result = await db.execute(stmt)
    return [_to_response(t, with_names=True) for t in result.scalars().all()]


async def delete_teaching_assignment(db: AsyncSession, assignment_id: UUID) -> bool:
    obj = await db.get(TeachingAssignment, assignment_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    return True


async def create_bulk_task(db: AsyncSession, payload: AssignmentBatchRequest) -> BulkTask:
    if not payload.actions:
        raise ServiceError("No actions to process", status.HTTP_400_BAD_REQUEST)
    task = BulkTask(
        status=TaskStatus.PENDING.value,
        total_count=len(payload.actions),
        processed_count=0,
        success_count=0,
        failed_count=0,
        errors=[],
    )
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task
