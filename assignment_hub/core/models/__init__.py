from assignment_hub.core.models.school_class import SchoolClass
from assignment_hub.core.models.subject import Subject
from assignment_hub.core.models.teacher import Teacher
from assignment_hub.core.models.teaching_assignment import TeachingAssignment
from assignment_hub.core.models.bulk_task import BulkTask

__all__ = [
    "BulkTask",
    "SchoolClass",
    "Subject",
    "Teacher",
    "TeachingAssignment",
]
