from typing import List

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_hub.core.exceptions import ServiceError
from assignment_hub.core.models import Subject

from .schemas import SubjectCreate, SubjectResponse


async def create_subject(db: AsyncSession, payload: SubjectCreate) -> SubjectResponse:
    code = payload.code.strip().upper()
    try:
        obj = Subject(
            name=payload.name.strip(),
            code=code,
            display_order=payload.display_order,
            is_active=True,
        )
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return SubjectResponse.model_validate(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError(f"Subject code {code} already exists", status.HTTP_409_CONFLICT)


async def list_subjects(db: AsyncSession, limit: int) -> List[SubjectResponse]:
    stmt = (
        select(Subject)
        .where(Subject.is_active.is_(True))
        .order_by(Subject.display_order.nullslast(), Subject.name)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [SubjectResponse.model_validate(s) for s in result.scalars().all()]
