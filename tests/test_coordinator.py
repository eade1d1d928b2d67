"""Bulk submission coordinator against a scripted API."""

import asyncio
from typing import List, Optional

import pytest

from assignment_hub.api.v1.tasks.schemas import TaskStatusResponse
from assignment_hub.core.exceptions import ApiError, DataLoadError, SubmissionError
from assignment_hub.matrix.actions import Action
from assignment_hub.matrix.client import BatchResult
from assignment_hub.matrix.coordinator import (
    TASK_ID_STORAGE_KEY,
    BulkSubmissionCoordinator,
    BulkTaskProgress,
    CoordinatorState,
)
from assignment_hub.matrix.drafts import DRAFT_STORAGE_KEY, DraftPersister
from assignment_hub.matrix.storage import MemoryStorage
from assignment_hub.matrix.store import Cell


ACTIONS = [
    Action.create("C1", "S2", "T2"),
    Action.update("A1", "C1", "S1", "T3"),
    Action.delete("A2"),
]


def _status(status: str, processed: int = 0, total: int = 3, success: int = 0, failed: int = 0) -> TaskStatusResponse:
    return TaskStatusResponse(
        task_id="task-1",
        status=status,
        processed=processed,
        total=total,
        success=success,
        failed=failed,
        details={"failed_count": failed} if status in ("SUCCESS", "PARTIAL_SUCCESS", "FAILED") else None,
    )


class FakeApi:
    def __init__(self) -> None:
        self.submitted: List[List[Action]] = []
        self.statuses: List[TaskStatusResponse] = []
        self.fail_submit = False
        self.fail_status = False
        self.status_calls = 0

    async def batch_update_assignments(self, actions) -> BatchResult:
        if self.fail_submit:
            raise ApiError("Service unavailable", 503)
        self.submitted.append(list(actions))
        return BatchResult(task_id="task-1", status="PENDING")

    async def get_task_status(self, task_id: str) -> TaskStatusResponse:
        self.status_calls += 1
        if self.fail_status:
            raise ApiError("connection reset")
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]


@pytest.fixture()
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def drafts(storage: MemoryStorage) -> DraftPersister:
    drafts = DraftPersister(storage)
    drafts.save({"C1": {"S1": Cell(selected_teacher_id="T9", is_dirty=True)}})
    return drafts


@pytest.fixture()
def reloads() -> List[BulkTaskProgress]:
    return []


@pytest.fixture()
async def make_coordinator(fake_api, storage, drafts, notifier, reloads):
    created = []

    def _make(delay: float = 0.0, poll_interval: Optional[float] = None, on_completed=None) -> BulkSubmissionCoordinator:
        async def record_reload(task: BulkTaskProgress) -> None:
            reloads.append(task.model_copy())

        coordinator = BulkSubmissionCoordinator(
            fake_api,
            storage,
            drafts,
            on_completed=on_completed or record_reload,
            notify=notifier,
            completion_check_delay=delay,
            poll_interval=poll_interval,
        )
        created.append(coordinator)
        return coordinator

    yield _make
    for coordinator in created:
        await coordinator.aclose()


@pytest.mark.asyncio
async def test_submit_enters_submitted_and_persists_task_id(make_coordinator, fake_api, storage) -> None:
    coordinator = make_coordinator(delay=60)
    task = await coordinator.submit(ACTIONS)

    assert coordinator.state == CoordinatorState.SUBMITTED
    assert fake_api.submitted == [ACTIONS]
    assert storage.get(TASK_ID_STORAGE_KEY) == "task-1"
    assert (task.task_id, task.processed_count, task.total_count) == ("task-1", 0, 3)


@pytest.mark.asyncio
async def test_submit_failure_stays_idle_and_persists_nothing(make_coordinator, fake_api, storage) -> None:
    fake_api.fail_submit = True
    coordinator = make_coordinator()
    with pytest.raises(SubmissionError, match="Service unavailable"):
        await coordinator.submit(ACTIONS)

    assert coordinator.state == CoordinatorState.IDLE
    assert coordinator.task is None
    assert storage.get(TASK_ID_STORAGE_KEY) is None
    assert storage.get(DRAFT_STORAGE_KEY) is not None


@pytest.mark.asyncio
async def test_second_submit_while_tracking_is_rejected(make_coordinator) -> None:
    coordinator = make_coordinator(delay=60)
    await coordinator.submit(ACTIONS)
    with pytest.raises(SubmissionError):
        await coordinator.submit(ACTIONS)


@pytest.mark.asyncio
async def test_poll_wins_race_and_late_push_is_noop(
    make_coordinator, fake_api, storage, notifications, reloads
) -> None:
    fake_api.statuses = [_status("SUCCESS", processed=3, success=3)]
    coordinator = make_coordinator(delay=0)
    await coordinator.submit(ACTIONS)

    await coordinator.handle_event(
        {"type": "bulk_update_progress", "task_id": "task-1", "processed": 1, "total": 3, "success": 1, "failed": 0, "errors": []}
    )
    assert coordinator.task.processed_count == 1

    await coordinator.drain()
    assert coordinator.state == CoordinatorState.COMPLETED
    assert coordinator.task.status == "SUCCESS"
    assert coordinator.task.processed_count == 3
    assert storage.get(TASK_ID_STORAGE_KEY) is None
    assert storage.get(DRAFT_STORAGE_KEY) is None
    assert notifications == [("success", "Teaching assignment changes saved")]
    assert len(reloads) == 1

    await coordinator.handle_event({"type": "bulk_update_complete", "task_id": "task-1", "status": "SUCCESS", "details": {}})
    assert notifications == [("success", "Teaching assignment changes saved")]
    assert len(reloads) == 1


@pytest.mark.asyncio
async def test_push_completion_then_delayed_poll_is_noop(make_coordinator, fake_api, notifications, reloads) -> None:
    fake_api.statuses = [_status("PARTIAL_SUCCESS", processed=3, success=2, failed=1)]
    coordinator = make_coordinator(delay=0)
    await coordinator.submit(ACTIONS)

    await coordinator.handle_event(
        {"type": "bulk_update_complete", "task_id": "task-1", "status": "PARTIAL_SUCCESS", "details": {"failed_count": 1}}
    )
    await coordinator.drain()

    assert coordinator.state == CoordinatorState.COMPLETED
    assert notifications == [("warning", "Teaching assignment changes saved with 1 failed action(s)")]
    assert len(reloads) == 1
    # Delayed check skips the poll entirely once the task is no longer tracked
    assert fake_api.status_calls == 0


@pytest.mark.asyncio
async def test_complete_task_twice_equals_once(make_coordinator, storage, notifications, reloads) -> None:
    coordinator = make_coordinator(delay=60)
    await coordinator.submit(ACTIONS)

    assert await coordinator.complete_task("task-1", "FAILED", {"failed_count": 3}) is True
    snapshot = (coordinator.task.model_dump(), dict(storage.data), coordinator.state)
    assert await coordinator.complete_task("task-1", "FAILED", {"failed_count": 3}) is False

    assert (coordinator.task.model_dump(), dict(storage.data), coordinator.state) == snapshot
    assert notifications == [("error", "Saving teaching assignment changes failed")]
    assert len(reloads) == 1


@pytest.mark.asyncio
async def test_events_for_other_tasks_are_ignored(make_coordinator, notifications) -> None:
    coordinator = make_coordinator(delay=60)
    await coordinator.submit(ACTIONS)

    await coordinator.handle_event(
        {"type": "bulk_update_progress", "task_id": "other", "processed": 2, "total": 2, "success": 2, "failed": 0, "errors": []}
    )
    await coordinator.handle_event({"type": "bulk_update_complete", "task_id": "other", "status": "SUCCESS"})
    await coordinator.handle_event({"type": "student_heartbeat", "task_id": "task-1"})
    await coordinator.handle_event({"type": "bulk_update_progress", "task_id": "task-1"})

    assert coordinator.state == CoordinatorState.SUBMITTED
    assert coordinator.task.processed_count == 0
    assert notifications == []


@pytest.mark.asyncio
async def test_failed_poll_never_changes_state(make_coordinator, fake_api, storage) -> None:
    fake_api.fail_status = True
    coordinator = make_coordinator(delay=0)
    await coordinator.submit(ACTIONS)
    await coordinator.drain()

    assert fake_api.status_calls == 1
    assert coordinator.state == CoordinatorState.SUBMITTED
    assert storage.get(TASK_ID_STORAGE_KEY) == "task-1"
    assert await coordinator.check_status("task-1") is None


@pytest.mark.asyncio
async def test_non_terminal_poll_updates_counters(make_coordinator, fake_api) -> None:
    fake_api.statuses = [_status("PROCESSING", processed=2, success=1, failed=1)]
    coordinator = make_coordinator(delay=60)
    await coordinator.submit(ACTIONS)

    assert await coordinator.check_status("task-1") == "PROCESSING"
    assert coordinator.state == CoordinatorState.SUBMITTED
    assert (coordinator.task.processed_count, coordinator.task.success_count, coordinator.task.failed_count) == (2, 1, 1)


@pytest.mark.asyncio
async def test_periodic_poll_detects_completion(make_coordinator, fake_api, notifications) -> None:
    fake_api.statuses = [_status("PROCESSING"), _status("PROCESSING", processed=2), _status("SUCCESS", processed=3, success=3)]
    coordinator = make_coordinator(delay=0, poll_interval=0.01)
    await coordinator.submit(ACTIONS)
    await coordinator.drain()

    assert coordinator.state == CoordinatorState.COMPLETED
    assert fake_api.status_calls == 3
    assert notifications == [("success", "Teaching assignment changes saved")]


@pytest.mark.asyncio
async def test_resume_without_persisted_task(make_coordinator) -> None:
    coordinator = make_coordinator()
    assert await coordinator.resume() is None
    assert coordinator.state == CoordinatorState.IDLE


@pytest.mark.asyncio
async def test_resume_completes_finished_task(make_coordinator, fake_api, storage, notifications, reloads) -> None:
    storage.set(TASK_ID_STORAGE_KEY, "task-1")
    fake_api.statuses = [_status("SUCCESS", processed=3, success=3)]
    coordinator = make_coordinator()

    task = await coordinator.resume()
    assert task.status == "SUCCESS"
    assert coordinator.state == CoordinatorState.COMPLETED
    assert storage.get(TASK_ID_STORAGE_KEY) is None
    assert storage.get(DRAFT_STORAGE_KEY) is None
    assert notifications == [("success", "Teaching assignment changes saved")]
    assert len(reloads) == 1


@pytest.mark.asyncio
async def test_resume_running_task_restarts_counters(make_coordinator, fake_api, storage) -> None:
    storage.set(TASK_ID_STORAGE_KEY, "task-1")
    fake_api.statuses = [_status("PROCESSING", processed=2, success=2)]
    coordinator = make_coordinator()

    task = await coordinator.resume()
    assert coordinator.state == CoordinatorState.SUBMITTED
    assert task.status == "PROCESSING"
    assert (task.processed_count, task.total_count) == (0, 0)
    assert storage.get(TASK_ID_STORAGE_KEY) == "task-1"

    await coordinator.handle_event(
        {"type": "bulk_update_progress", "task_id": "task-1", "processed": 3, "total": 4, "success": 3, "failed": 0, "errors": []}
    )
    assert (task.processed_count, task.total_count) == (3, 4)


@pytest.mark.asyncio
async def test_resume_with_unreachable_service_keeps_tracking(make_coordinator, fake_api, storage) -> None:
    storage.set(TASK_ID_STORAGE_KEY, "task-1")
    fake_api.fail_status = True
    coordinator = make_coordinator()

    await coordinator.resume()
    assert coordinator.state == CoordinatorState.SUBMITTED
    assert storage.get(TASK_ID_STORAGE_KEY) == "task-1"


@pytest.mark.asyncio
async def test_reload_failure_after_completion_is_logged(make_coordinator, storage, caplog) -> None:
    async def failing_reload(task: BulkTaskProgress) -> None:
        raise DataLoadError("Failed to fetch data: offline")

    coordinator = make_coordinator(delay=60, on_completed=failing_reload)
    await coordinator.submit(ACTIONS)

    assert await coordinator.complete_task("task-1", "SUCCESS") is True
    assert coordinator.state == CoordinatorState.COMPLETED
    assert storage.get(TASK_ID_STORAGE_KEY) is None
    assert "Reload after bulk task task-1 failed" in caplog.text


@pytest.mark.asyncio
async def test_drain_timeout_leaves_poller_running(make_coordinator, fake_api, notifications) -> None:
    fake_api.statuses = [_status("PROCESSING", processed=1)]
    coordinator = make_coordinator(delay=0, poll_interval=0.01)
    await coordinator.submit(ACTIONS)

    with pytest.raises(asyncio.TimeoutError):
        await coordinator.drain(timeout=0.05)
    assert coordinator.state == CoordinatorState.SUBMITTED
    calls = fake_api.status_calls

    fake_api.statuses = [_status("SUCCESS", processed=3, success=3)]
    await coordinator.drain(timeout=5)
    assert fake_api.status_calls > calls
    assert coordinator.state == CoordinatorState.COMPLETED
    assert notifications == [("success", "Teaching assignment changes saved")]
