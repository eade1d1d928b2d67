from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from assignment_hub.core.models import BulkTask

from .schemas import TaskStatusResponse


def _task_to_response(t: BulkTask) -> TaskStatusResponse:
    return TaskStatusResponse(
        task_id=str(t.id),
        status=t.status,
        processed=t.processed_count,
        total=t.total_count,
        success=t.success_count,
        failed=t.failed_count,
        errors=list(t.errors or []),
        details=t.details,
    )


async def get_task_status(db: AsyncSession, task_id: UUID) -> Optional[TaskStatusResponse]:
    task = await db.get(BulkTask, task_id, populate_existing=True)
    if not task:
        return None
    return _task_to_response(task)
