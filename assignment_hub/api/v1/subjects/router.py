from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from assignment_hub.core.config import settings
from assignment_hub.core.exceptions import ServiceError
from assignment_hub.db.session import get_db

from .schemas import SubjectCreate, SubjectResponse
from . import service

router = APIRouter(prefix="/api/v1/subjects", tags=["subjects"])


@router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
) -> SubjectResponse:
    try:
        return await service.create_subject(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[SubjectResponse])
async def list_subjects(
    limit: int = Query(settings.list_fetch_limit, ge=1, le=settings.list_max_limit),
    db: AsyncSession = Depends(get_db),
) -> List[SubjectResponse]:
    return await service.list_subjects(db, limit)
