"""
Editable class x subject grid of teaching assignments.

The store keeps two matrices: the current one, edited cell by cell, and the
baseline, an independent clone taken right after build that represents what
the server holds. Cell edits never touch the baseline.
"""

from typing import Dict, Iterable, Iterator, Optional, Tuple

from pydantic import BaseModel

from assignment_hub.core.exceptions import UnknownCellError


class ClassItem(BaseModel):
    id: str
    name: str
    grade_level: Optional[int] = None


class SubjectItem(BaseModel):
    id: str
    name: str
    code: Optional[str] = None


class TeacherItem(BaseModel):
    id: str
    full_name: str
    login_id: Optional[str] = None


class AssignmentRef(BaseModel):
    """Existing teaching assignment as served by the data source."""

    id: str
    class_id: str
    subject_id: str
    teacher_id: str
    class_name: Optional[str] = None
    subject_name: Optional[str] = None
    teacher_name: Optional[str] = None


class Cell(BaseModel):
    assignment: Optional[AssignmentRef] = None
    selected_teacher_id: Optional[str] = None
    is_dirty: bool = False
    original_assignment_id: Optional[str] = None


Matrix = Dict[str, Dict[str, Cell]]


def clone_cell(cell: Cell) -> Cell:
    return Cell(
        assignment=AssignmentRef(**cell.assignment.model_dump()) if cell.assignment else None,
        selected_teacher_id=cell.selected_teacher_id,
        is_dirty=cell.is_dirty,
        original_assignment_id=cell.original_assignment_id,
    )


def clone_matrix(matrix: Matrix) -> Matrix:
    """Deep copy sharing no Cell or AssignmentRef instances with the source. Key order is kept."""
    return {
        class_id: {subject_id: clone_cell(cell) for subject_id, cell in row.items()}
        for class_id, row in matrix.items()
    }


def build_matrix(
    classes: Iterable[ClassItem],
    subjects: Iterable[SubjectItem],
    assignments: Iterable[AssignmentRef],
) -> Matrix:
    subjects = list(subjects)
    matrix: Matrix = {cls.id: {subj.id: Cell() for subj in subjects} for cls in classes}

    for assignment in assignments:
        row = matrix.get(assignment.class_id)
        if row is None or assignment.subject_id not in row:
            # Assignment for a class/subject outside the grid
            continue
        row[assignment.subject_id] = Cell(
            assignment=assignment,
            selected_teacher_id=assignment.teacher_id,
            is_dirty=False,
            original_assignment_id=assignment.id,
        )
    return matrix


class MatrixStore:
    def __init__(self) -> None:
        self.matrix: Matrix = {}
        self.baseline: Matrix = {}

    def build(
        self,
        classes: Iterable[ClassItem],
        subjects: Iterable[SubjectItem],
        assignments: Iterable[AssignmentRef],
    ) -> Matrix:
        self.matrix = build_matrix(classes, subjects, assignments)
        self.baseline = clone_matrix(self.matrix)
        return self.matrix

    def get_cell(self, class_id: str, subject_id: str) -> Cell:
        try:
            return self.matrix[class_id][subject_id]
        except KeyError:
            raise UnknownCellError(class_id, subject_id) from None

    def set_cell(self, class_id: str, subject_id: str, teacher_id: Optional[str]) -> Cell:
        """Select a teacher (None clears the cell). Always marks the cell dirty, even if nothing changed."""
        cell = self.get_cell(class_id, subject_id)
        cell.selected_teacher_id = teacher_id or None
        cell.is_dirty = True
        return cell

    def has_any_dirty(self) -> bool:
        return any(cell.is_dirty for row in self.matrix.values() for cell in row.values())

    def dirty_cells(self) -> Iterator[Tuple[str, str, Cell]]:
        for class_id, row in self.matrix.items():
            for subject_id, cell in row.items():
                if cell.is_dirty:
                    yield class_id, subject_id, cell

    def reset(self, baseline: Optional[Matrix] = None) -> Matrix:
        """Discard all edits: the current matrix becomes a fresh copy of the baseline."""
        self.matrix = clone_matrix(self.baseline if baseline is None else baseline)
        return self.matrix

    def replace(self, matrix: Matrix) -> Matrix:
        """
        Install a restored draft. Only cells that exist in the current grid are
        taken from it; everything else falls back to the baseline.
        """
        merged = clone_matrix(self.baseline)
        for class_id, row in merged.items():
            saved_row = matrix.get(class_id, {})
            for subject_id in row:
                if subject_id in saved_row:
                    row[subject_id] = clone_cell(saved_row[subject_id])
        self.matrix = merged
        return self.matrix
