"""
Submission and completion tracking for teaching-assignment bulk tasks.

One submission moves IDLE -> SUBMITTED -> COMPLETED. Completion can be
observed through two independent channels, push events and polled status
checks, and both funnel into complete_task(), which runs at most once per
task id. The server-assigned task id is kept in local storage so a restarted
client can re-attach with resume().
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, Dict, List, Mapping, Optional, Protocol, Sequence, Set, Tuple

from pydantic import BaseModel, Field, ValidationError

from assignment_hub.api.v1.tasks.schemas import (
    BulkUpdateCompleteEvent,
    BulkUpdateProgressEvent,
    TaskStatusResponse,
)
from assignment_hub.core.config import settings
from assignment_hub.core.enums import PushEventType, TaskStatus, is_terminal_status
from assignment_hub.core.exceptions import ApiError, MatrixError, SubmissionError

from .actions import Action
from .client import BatchResult
from .drafts import DraftPersister
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

TASK_ID_STORAGE_KEY = "assignment_task_id"

Notifier = Callable[[str, str], None]


class CoordinatorState(str, Enum):
    IDLE = "IDLE"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"


class BulkTaskProgress(BaseModel):
    task_id: str
    status: str = TaskStatus.PENDING.value
    processed_count: int = 0
    total_count: int = 0
    success_count: int = 0
    failed_count: int = 0
    errors: List[str] = Field(default_factory=list)
    details: Optional[Dict[str, Any]] = None


class BulkTaskApi(Protocol):
    async def batch_update_assignments(self, actions: Sequence[Action]) -> BatchResult:
        ...

    async def get_task_status(self, task_id: str) -> TaskStatusResponse:
        ...


def outcome_message(task: BulkTaskProgress) -> Tuple[str, str]:
    """(level, message) shown to the user once a task reaches its terminal status."""
    failed = task.failed_count
    if task.details and isinstance(task.details.get("failed_count"), int):
        failed = task.details["failed_count"]
    if task.status == TaskStatus.SUCCESS.value:
        return "success", "Teaching assignment changes saved"
    if task.status == TaskStatus.PARTIAL_SUCCESS.value:
        return "warning", f"Teaching assignment changes saved with {failed} failed action(s)"
    return "error", "Saving teaching assignment changes failed"


def log_notifier(level: str, message: str) -> None:
    logger.info("[%s] %s", level, message)


class BulkSubmissionCoordinator:
    def __init__(
        self,
        api: BulkTaskApi,
        storage: KeyValueStorage,
        drafts: DraftPersister,
        on_completed: Optional[Callable[[BulkTaskProgress], Awaitable[None]]] = None,
        notify: Notifier = log_notifier,
        completion_check_delay: float = settings.completion_check_delay_seconds,
        poll_interval: Optional[float] = settings.status_poll_interval_seconds,
    ) -> None:
        self.api = api
        self.storage = storage
        self.drafts = drafts
        self.on_completed = on_completed
        self.notify = notify
        self.completion_check_delay = completion_check_delay
        self.poll_interval = poll_interval

        self.state = CoordinatorState.IDLE
        self.task: Optional[BulkTaskProgress] = None
        self._completed: Set[str] = set()
        self._background: Set[asyncio.Task] = set()

    @property
    def is_busy(self) -> bool:
        return self.state == CoordinatorState.SUBMITTED

    def _is_current(self, task_id: str) -> bool:
        return self.task is not None and self.task.task_id == task_id

    def _is_tracking(self, task_id: str) -> bool:
        return self._is_current(task_id) and self.state == CoordinatorState.SUBMITTED

    # -- persisted task id ------------------------------------------------

    def stored_task_id(self) -> Optional[str]:
        try:
            return self.storage.get(TASK_ID_STORAGE_KEY) or None
        except Exception:
            logger.exception("Error reading persisted bulk task id")
            return None

    def _store_task_id(self, task_id: str) -> None:
        try:
            self.storage.set(TASK_ID_STORAGE_KEY, task_id)
        except Exception:
            logger.exception("Error persisting bulk task id %s", task_id)

    def _clear_task_id(self) -> None:
        try:
            self.storage.delete(TASK_ID_STORAGE_KEY)
        except Exception:
            logger.exception("Error clearing persisted bulk task id")

    # -- background work --------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _delayed_check(self, task_id: str) -> None:
        await asyncio.sleep(self.completion_check_delay)
        if self._is_tracking(task_id):
            await self.check_status(task_id)

    async def _poll_until_complete(self, task_id: str) -> None:
        while self._is_tracking(task_id):
            await asyncio.sleep(self.poll_interval)
            if self._is_tracking(task_id):
                await self.check_status(task_id)

    def _start_polling(self, task_id: str) -> None:
        if self.poll_interval:
            self._spawn(self._poll_until_complete(task_id))

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for scheduled status checks. While a periodic poller is active this
        only returns once the task is terminal, so pass ``timeout`` to bound the
        wait; asyncio.TimeoutError is raised and the background work keeps running.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._background:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                raise asyncio.TimeoutError(f"Bulk task checks still running after {timeout}s")
            done, _ = await asyncio.wait(list(self._background), timeout=remaining)
            for task in done:
                if not task.cancelled():
                    task.result()

    async def aclose(self) -> None:
        for task in list(self._background):
            task.cancel()
        await asyncio.gather(*list(self._background), return_exceptions=True)
        self._background.clear()

    # -- state transitions ------------------------------------------------

    async def submit(self, actions: Sequence[Action]) -> BulkTaskProgress:
        if self.is_busy:
            raise SubmissionError("A bulk update is already in progress")
        try:
            result = await self.api.batch_update_assignments(actions)
        except ApiError as e:
            logger.error("Bulk assignment submission failed: %s", e.message)
            raise SubmissionError(e.message) from e

        self._store_task_id(result.task_id)
        self.task = BulkTaskProgress(task_id=result.task_id, status=result.status, total_count=len(actions))
        self.state = CoordinatorState.SUBMITTED
        logger.info("Bulk task %s submitted with %d actions", result.task_id, len(actions))

        # The task can finish before its push event reaches us; check once shortly after.
        self._spawn(self._delayed_check(result.task_id))
        self._start_polling(result.task_id)
        return self.task

    async def resume(self) -> Optional[BulkTaskProgress]:
        """Re-attach to a task persisted by an earlier run. The reported status is kept, counters restart from zero."""
        task_id = self.stored_task_id()
        if not task_id:
            return None
        self.task = BulkTaskProgress(task_id=task_id)
        self.state = CoordinatorState.SUBMITTED
        logger.info("Resuming bulk task %s", task_id)

        status = await self._fetch_status(task_id)
        if status is not None and is_terminal_status(status.status):
            await self.complete_task(task_id, status.status, status.details, snapshot=status)
        elif self._is_tracking(task_id):
            if status is not None:
                self.task.status = status.status
            self._start_polling(task_id)
        return self.task

    async def _fetch_status(self, task_id: str) -> Optional[TaskStatusResponse]:
        try:
            return await self.api.get_task_status(task_id)
        except ApiError as e:
            logger.warning("Status check for bulk task %s failed: %s", task_id, e.message)
            return None

    def _apply_counters(
        self,
        processed: int,
        total: int,
        success: int,
        failed: int,
        errors: List[str],
    ) -> None:
        self.task.processed_count = processed
        self.task.total_count = total
        self.task.success_count = success
        self.task.failed_count = failed
        self.task.errors = list(errors)

    async def check_status(self, task_id: str) -> Optional[str]:
        """One polled status check. Returns the reported status, or None when the check failed."""
        status = await self._fetch_status(task_id)
        if status is None:
            return None
        if is_terminal_status(status.status):
            await self.complete_task(task_id, status.status, status.details, snapshot=status)
        elif self._is_tracking(task_id):
            self.task.status = status.status
            self._apply_counters(status.processed, status.total, status.success, status.failed, status.errors)
        return status.status

    async def handle_event(self, event: Mapping[str, Any]) -> None:
        """Entry point for push-channel messages. Unrelated message types are ignored."""
        kind = event.get("type")
        try:
            if kind == PushEventType.BULK_UPDATE_PROGRESS.value:
                progress = BulkUpdateProgressEvent.model_validate(event)
                if not self._is_tracking(progress.task_id):
                    logger.debug("Ignoring progress for untracked task %s", progress.task_id)
                    return
                self._apply_counters(
                    progress.processed, progress.total, progress.success, progress.failed, progress.errors
                )
            elif kind == PushEventType.BULK_UPDATE_COMPLETE.value:
                complete = BulkUpdateCompleteEvent.model_validate(event)
                await self.complete_task(complete.task_id, complete.status, complete.details)
        except ValidationError as e:
            logger.warning("Malformed %s event: %s", kind, e)

    async def complete_task(
        self,
        task_id: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
        snapshot: Optional[TaskStatusResponse] = None,
    ) -> bool:
        """
        Run the completion path for ``task_id``. Returns False without side
        effects when the task is not the tracked one or was already completed.
        """
        if task_id in self._completed:
            logger.debug("Bulk task %s already completed", task_id)
            return False
        if not self._is_current(task_id):
            logger.debug("Ignoring completion of untracked task %s", task_id)
            return False
        self._completed.add(task_id)

        task = self.task
        task.status = status
        task.details = details
        if snapshot is not None:
            self._apply_counters(snapshot.processed, snapshot.total, snapshot.success, snapshot.failed, snapshot.errors)

        self.drafts.clear()
        self._clear_task_id()
        self.state = CoordinatorState.COMPLETED
        logger.info("Bulk task %s completed with status %s", task_id, status)

        level, message = outcome_message(task)
        self.notify(level, message)

        if self.on_completed is not None:
            try:
                await self.on_completed(task)
            except MatrixError as e:
                logger.error("Reload after bulk task %s failed: %s", task_id, e.message)
        return True
