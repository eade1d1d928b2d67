from typing import List

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_hub.core.exceptions import ServiceError
from assignment_hub.core.models import Teacher

from .schemas import TeacherCreate, TeacherResponse


async def create_teacher(db: AsyncSession, payload: TeacherCreate) -> TeacherResponse:
    try:
        obj = Teacher(login_id=payload.login_id.strip(), full_name=payload.full_name.strip(), is_active=True)
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return TeacherResponse.model_validate(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Teacher login id already exists", status.HTTP_409_CONFLICT)


async def list_teachers(db: AsyncSession, limit: int) -> List[TeacherResponse]:
    stmt = (
        select(Teacher)
        .where(Teacher.is_active.is_(True))
        .order_by(Teacher.full_name)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [TeacherResponse.model_validate(t) for t in result.scalars().all()]
