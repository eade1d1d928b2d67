from typing import List

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_hub.core.exceptions import ServiceError
from assignment_hub.core.models import SchoolClass

from .schemas import ClassCreate, ClassResponse


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        name=c.name,
        grade_level=c.grade_level,
        academic_year=c.academic_year,
        display_order=c.display_order,
        is_active=c.is_active,
        created_at=c.created_at,
    )


async def create_class(db: AsyncSession, payload: ClassCreate) -> ClassResponse:
    try:
        obj = SchoolClass(
            name=payload.name.strip(),
            grade_level=payload.grade_level,
            academic_year=payload.academic_year,
            display_order=payload.display_order,
            is_active=True,
        )
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
        return _class_to_response(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Class name already exists", status.HTTP_409_CONFLICT)


async def list_classes(db: AsyncSession, limit: int) -> List[ClassResponse]:
    stmt = (
        select(SchoolClass)
        .where(SchoolClass.is_active.is_(True))
        .order_by(SchoolClass.display_order.nullslast(), SchoolClass.name)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [_class_to_response(c) for c in result.scalars().all()]
