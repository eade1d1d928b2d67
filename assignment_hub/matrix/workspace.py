"""
The owning context for one assignment-editing session.

Wires the matrix store, the draft persister, the confirmation gate and the
bulk submission coordinator to the data source, the way the assignment
screen drives them: load, edit with auto-saved drafts, prepare, confirm,
submit, and reload once the bulk task completes.
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional

from assignment_hub.core.config import settings
from assignment_hub.core.exceptions import ApiError, DataLoadError, NothingToSaveError, SubmissionError

from .actions import Action, generate_actions
from .client import AssignmentApiClient
from .confirmation import ConfirmationGate, PendingSubmission
from .coordinator import BulkSubmissionCoordinator, BulkTaskProgress, Notifier, log_notifier
from .drafts import DraftPersister
from .storage import KeyValueStorage
from .store import AssignmentRef, ClassItem, Matrix, MatrixStore, SubjectItem, TeacherItem

logger = logging.getLogger(__name__)


class AssignmentWorkspace:
    def __init__(
        self,
        api: AssignmentApiClient,
        storage: KeyValueStorage,
        notify: Notifier = log_notifier,
        drafts: Optional[DraftPersister] = None,
        fetch_limit: int = settings.list_fetch_limit,
        completion_check_delay: float = settings.completion_check_delay_seconds,
        poll_interval: Optional[float] = settings.status_poll_interval_seconds,
    ) -> None:
        self.api = api
        self.notify = notify
        self.fetch_limit = fetch_limit
        self.store = MatrixStore()
        self.drafts = drafts or DraftPersister(storage)
        self.gate = ConfirmationGate()
        self.coordinator = BulkSubmissionCoordinator(
            api,
            storage,
            self.drafts,
            on_completed=self._on_task_completed,
            notify=notify,
            completion_check_delay=completion_check_delay,
            poll_interval=poll_interval,
        )

        self.classes: List[ClassItem] = []
        self.subjects: List[SubjectItem] = []
        self.teachers: List[TeacherItem] = []
        self.assignments: List[AssignmentRef] = []
        self.has_draft = False

    @property
    def matrix(self) -> Matrix:
        return self.store.matrix

    @property
    def has_changes(self) -> bool:
        return self.store.has_any_dirty()

    async def load(self) -> Matrix:
        """Fetch all source lists and rebuild the matrix and its baseline."""
        try:
            classes, subjects, teachers, assignments = await asyncio.gather(
                self.api.get_classes(self.fetch_limit),
                self.api.get_subjects(self.fetch_limit),
                self.api.get_teachers(self.fetch_limit),
                self.api.get_teaching_assignments(self.fetch_limit),
            )
        except ApiError as e:
            logger.error("Error fetching assignment data: %s", e.message)
            raise DataLoadError(f"Failed to fetch data: {e.message}") from e

        self.classes, self.subjects, self.teachers, self.assignments = classes, subjects, teachers, assignments
        self.store.build(classes, subjects, assignments)
        self.has_draft = self.drafts.has_draft()
        return self.store.matrix

    async def start(self) -> Optional[BulkTaskProgress]:
        """Load data, then re-attach to a bulk task left running by an earlier session."""
        await self.load()
        return await self.coordinator.resume()

    def _discard_pending(self) -> None:
        if self.gate.pending is not None:
            logger.info("Matrix changed after save was prepared; confirmation required again")
            self.gate.cancel()

    def set_cell(self, class_id: str, subject_id: str, teacher_id: Optional[str]) -> None:
        """Edit one cell. A prepared or confirmed action list no longer matches the grid and is dropped."""
        self.store.set_cell(class_id, subject_id, teacher_id)
        self._discard_pending()
        if self.store.has_any_dirty():
            self.drafts.save(self.store.matrix)
            self.has_draft = True

    def restore_draft(self) -> bool:
        draft = self.drafts.load()
        if draft is None:
            self.has_draft = False
            return False
        self.store.replace(draft.matrix)
        self._discard_pending()
        self.has_draft = False
        self.notify("success", "Draft restored")
        return True

    def reset_changes(self) -> None:
        self.store.reset()
        self.drafts.clear()
        self.gate.cancel()
        self.has_draft = False
        self.notify("info", "Changes reset")

    def pending_actions(self) -> List[Action]:
        return generate_actions(self.store.matrix, self.store.baseline)

    def prepare_save(self) -> PendingSubmission:
        try:
            return self.gate.prepare(self.pending_actions())
        except NothingToSaveError as e:
            self.notify("info", e.message)
            raise

    def describe_pending(self) -> List[str]:
        if self.gate.pending is None:
            return []
        return self.gate.describe(self.gate.pending.actions, self.classes, self.subjects, self.teachers)

    def confirm(self) -> PendingSubmission:
        return self.gate.confirm()

    async def submit(self) -> BulkTaskProgress:
        """Send the confirmed action list. On failure the pending list is kept so the user can retry."""
        actions = self.gate.release()
        try:
            task = await self.coordinator.submit(actions)
        except SubmissionError as e:
            self.notify("error", e.message)
            raise
        self.gate.cancel()
        return task

    async def handle_push_event(self, event: Mapping[str, Any]) -> None:
        await self.coordinator.handle_event(event)

    async def _on_task_completed(self, task: BulkTaskProgress) -> None:
        await self.load()

    async def aclose(self) -> None:
        await self.coordinator.aclose()
