from typing import Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MatrixError(Exception):
    """Base exception for the assignment matrix client."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownCellError(MatrixError):
    def __init__(self, class_id: str, subject_id: str) -> None:
        super().__init__(f"No matrix cell for class {class_id} / subject {subject_id}")
        self.class_id = class_id
        self.subject_id = subject_id


class ApiError(MatrixError):
    """HTTP, transport or response-decoding failure talking to the assignment service."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DataLoadError(MatrixError):
    """Initial fetch of classes/subjects/teachers/assignments failed. Retryable."""


class SubmissionError(MatrixError):
    """Batch submission was rejected or never reached the server. Nothing was persisted."""


class NothingToSaveError(MatrixError):
    """The action list is empty; there is nothing to submit."""

    def __init__(self, message: str = "No changes to save") -> None:
        super().__init__(message)


class ConfirmationRequiredError(MatrixError):
    """Submission attempted before the pending action list was confirmed."""

    def __init__(self, message: str = "Changes must be confirmed before they are submitted") -> None:
        super().__init__(message)
