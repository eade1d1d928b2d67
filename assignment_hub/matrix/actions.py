from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from assignment_hub.core.enums import ActionType

from .store import Matrix


class ActionData(BaseModel):
    class_id: str
    subject_id: str
    teacher_id: str


class Action(BaseModel):
    type: ActionType
    assignment_id: Optional[str] = None
    data: Optional[ActionData] = None

    @classmethod
    def create(cls, class_id: str, subject_id: str, teacher_id: str) -> "Action":
        return cls(
            type=ActionType.CREATE,
            data=ActionData(class_id=class_id, subject_id=subject_id, teacher_id=teacher_id),
        )

    @classmethod
    def update(cls, assignment_id: str, class_id: str, subject_id: str, teacher_id: str) -> "Action":
        return cls(
            type=ActionType.UPDATE,
            assignment_id=assignment_id,
            data=ActionData(class_id=class_id, subject_id=subject_id, teacher_id=teacher_id),
        )

    @classmethod
    def delete(cls, assignment_id: str) -> "Action":
        return cls(type=ActionType.DELETE, assignment_id=assignment_id)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def generate_actions(matrix: Matrix, baseline: Matrix) -> List[Action]:
    """
    Diff the dirty cells of ``matrix`` against ``baseline``.

    Only the baseline decides what "original" means: a dirty cell whose
    selection equals the original teacher yields nothing. Output follows the
    class order, then the subject order, of ``matrix``.
    """
    actions: List[Action] = []
    for class_id, row in matrix.items():
        baseline_row = baseline.get(class_id, {})
        for subject_id, cell in row.items():
            if not cell.is_dirty:
                continue
            original = baseline_row.get(subject_id)
            had_assignment = original is not None and original.assignment is not None
            new_teacher = cell.selected_teacher_id

            if had_assignment and new_teacher:
                if new_teacher != original.assignment.teacher_id:
                    actions.append(
                        Action.update(original.original_assignment_id, class_id, subject_id, new_teacher)
                    )
            elif had_assignment:
                actions.append(Action.delete(original.original_assignment_id))
            elif new_teacher:
                actions.append(Action.create(class_id, subject_id, new_teacher))
    return actions
