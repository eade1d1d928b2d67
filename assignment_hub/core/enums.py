from enum import Enum


class ActionType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset(
    {TaskStatus.SUCCESS.value, TaskStatus.PARTIAL_SUCCESS.value, TaskStatus.FAILED.value}
)


def is_terminal_status(status: str) -> bool:
    """Any status outside SUCCESS / PARTIAL_SUCCESS / FAILED is still in flight."""
    return getattr(status, "value", status) in TERMINAL_STATUSES


class PushEventType(str, Enum):
    BULK_UPDATE_PROGRESS = "bulk_update_progress"
    BULK_UPDATE_COMPLETE = "bulk_update_complete"
