"""
Background processing of a teaching-assignment batch.

Actions are applied in request order, each in its own transaction, so one
failing action never rolls back the others. A bulk_update_progress event is
published after every action and a single bulk_update_complete event once
the task reaches its terminal status. An unexpected error aborts the rest
of the batch and still ends the task as FAILED.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from assignment_hub.api.v1.notifications.hub import NotificationHub
from assignment_hub.api.v1.tasks.schemas import BulkUpdateCompleteEvent, BulkUpdateProgressEvent
from assignment_hub.core.enums import TaskStatus
from assignment_hub.core.exceptions import ServiceError
from assignment_hub.core.models import BulkTask

from .schemas import AssignmentAction
from .service import apply_action

logger = logging.getLogger(__name__)


def final_status(success: int, failed: int) -> TaskStatus:
    if failed == 0:
        return TaskStatus.SUCCESS
    if success == 0:
        return TaskStatus.FAILED
    return TaskStatus.PARTIAL_SUCCESS


async def _update_task(db: AsyncSession, task_id: UUID, **values) -> None:
    await db.execute(update(BulkTask).where(BulkTask.id == task_id).values(**values))
    await db.commit()


async def process_bulk_task(
    session_factory: async_sessionmaker,
    hub: NotificationHub,
    task_id: UUID,
    actions: List[AssignmentAction],
) -> None:
    total = len(actions)
    success = 0
    failed = 0
    errors: List[str] = []
    applied: Counter = Counter()

    try:
        async with session_factory() as db:
            await _update_task(db, task_id, status=TaskStatus.PROCESSING.value)
            logger.info("Bulk task %s started with %d actions", task_id, total)

            for index, action in enumerate(actions, start=1):
                try:
                    await apply_action(db, action)
                    await db.commit()
                    success += 1
                    applied[action.type.value] += 1
                except (ServiceError, IntegrityError) as e:
                    await db.rollback()
                    failed += 1
                    reason = e.message if isinstance(e, ServiceError) else "conflicts with an existing assignment"
                    errors.append(f"Action {index} ({action.type.value}): {reason}")
                    logger.warning("Bulk task %s: %s", task_id, errors[-1])

                await _update_task(
                    db,
                    task_id,
                    processed_count=index,
                    success_count=success,
                    failed_count=failed,
                    errors=list(errors),
                )
                progress = BulkUpdateProgressEvent(
                    task_id=str(task_id),
                    processed=index,
                    total=total,
                    success=success,
                    failed=failed,
                    errors=list(errors),
                )
                await hub.publish(progress.model_dump(mode="json"))
        status = final_status(success, failed)
    except Exception as e:
        # Session close rolls back whatever the failed action left behind
        logger.exception("Bulk task %s aborted after %d of %d actions", task_id, success + failed, total)
        errors.append(f"Bulk task aborted: {e}")
        status = TaskStatus.FAILED

    details = {
        "created": applied["create"],
        "updated": applied["update"],
        "deleted": applied["delete"],
        "success_count": success,
        "failed_count": failed,
        "errors": list(errors),
    }
    try:
        async with session_factory() as db:
            await _update_task(
                db,
                task_id,
                status=status.value,
                processed_count=success + failed,
                success_count=success,
                failed_count=failed,
                errors=list(errors),
                details=details,
                finished_at=datetime.utcnow(),
            )
    except Exception:
        logger.exception("Could not record final status %s for bulk task %s", status.value, task_id)

    logger.info("Bulk task %s finished: %s (%d ok, %d failed)", task_id, status.value, success, failed)
    complete = BulkUpdateCompleteEvent(task_id=str(task_id), status=status.value, details=details)
    await hub.publish(complete.model_dump(mode="json"))
