"""
Gate between a computed action list and its submission.

prepare() holds the list, confirm() records the explicit go-ahead and
release() hands the untouched list back only once confirmed.
"""

from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from assignment_hub.core.enums import ActionType
from assignment_hub.core.exceptions import ConfirmationRequiredError, NothingToSaveError

from .actions import Action
from .store import ClassItem, SubjectItem, TeacherItem


class ActionCounts(BaseModel):
    create: int = 0
    update: int = 0
    delete: int = 0


class ActionSummary(BaseModel):
    has_deletes: bool
    counts: ActionCounts

    @property
    def total(self) -> int:
        return self.counts.create + self.counts.update + self.counts.delete


class PendingSubmission:
    def __init__(self, actions: Sequence[Action], summary: ActionSummary) -> None:
        self.actions = tuple(actions)
        self.summary = summary
        self.confirmed = False


def classify(actions: Iterable[Action]) -> ActionSummary:
    counts = ActionCounts()
    for action in actions:
        if action.type == ActionType.CREATE:
            counts.create += 1
        elif action.type == ActionType.UPDATE:
            counts.update += 1
        else:
            counts.delete += 1
    return ActionSummary(has_deletes=counts.delete > 0, counts=counts)


class ConfirmationGate:
    def __init__(self) -> None:
        self.pending: Optional[PendingSubmission] = None

    def classify(self, actions: Iterable[Action]) -> ActionSummary:
        return classify(actions)

    def prepare(self, actions: Sequence[Action]) -> PendingSubmission:
        if not actions:
            self.pending = None
            raise NothingToSaveError()
        self.pending = PendingSubmission(actions, classify(actions))
        return self.pending

    def confirm(self, pending: Optional[PendingSubmission] = None) -> PendingSubmission:
        target = pending or self.pending
        if target is None or target is not self.pending:
            raise ConfirmationRequiredError("There are no pending changes to confirm")
        target.confirmed = True
        return target

    def release(self) -> List[Action]:
        if self.pending is None or not self.pending.confirmed:
            raise ConfirmationRequiredError()
        return list(self.pending.actions)

    def cancel(self) -> None:
        self.pending = None

    def describe(
        self,
        actions: Iterable[Action],
        classes: Iterable[ClassItem],
        subjects: Iterable[SubjectItem],
        teachers: Iterable[TeacherItem],
    ) -> List[str]:
        """Readable lines for the confirmation prompt, deletes first, then updates, then creates."""
        class_names = {c.id: c.name for c in classes}
        subject_names = {s.id: f"{s.name} ({s.code})" if s.code else s.name for s in subjects}
        teacher_names = {t.id: t.full_name or t.login_id for t in teachers}

        def target(action: Action) -> str:
            data = action.data
            return "{} / {} -> {}".format(
                class_names.get(data.class_id, "unknown class"),
                subject_names.get(data.subject_id, "unknown subject"),
                teacher_names.get(data.teacher_id, "unknown teacher"),
            )

        actions = list(actions)
        lines = [f"Delete: assignment {a.assignment_id}" for a in actions if a.type == ActionType.DELETE]
        lines += [f"Update: {target(a)}" for a in actions if a.type == ActionType.UPDATE]
        lines += [f"Create: {target(a)}" for a in actions if a.type == ActionType.CREATE]
        return lines
