from typing import Any, List, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from assignment_hub.api.v1.tasks.schemas import TaskStatusResponse
from assignment_hub.core.config import settings
from assignment_hub.core.exceptions import ApiError

from .actions import Action
from .store import AssignmentRef, ClassItem, SubjectItem, TeacherItem

ModelT = TypeVar("ModelT", bound=BaseModel)


class BatchResult(BaseModel):
    task_id: str
    status: str


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return str(body)


def _parse(model: Type[ModelT], data: Any, path: str) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"Malformed response from {path}: {e.error_count()} validation error(s)") from e


def _parse_list(model: Type[ModelT], rows: Any, path: str) -> List[ModelT]:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ApiError(f"Malformed response from {path}: expected a list")
    return [_parse(model, r, path) for r in rows]


class AssignmentApiClient:
    """Async client for the class/subject/teacher lists, the batch endpoint and task status."""

    def __init__(
        self,
        base_url: str = settings.api_base_url,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = settings.api_timeout_seconds,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request and decode its JSON body. Every failure surfaces as ApiError."""
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ApiError(_error_detail(e.response), e.response.status_code) from e
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned a non-JSON body", response.status_code) from e

    async def get_classes(self, limit: int = settings.list_fetch_limit) -> List[ClassItem]:
        path = "/api/v1/classes"
        return _parse_list(ClassItem, await self._request("GET", path, params={"limit": limit}), path)

    async def get_subjects(self, limit: int = settings.list_fetch_limit) -> List[SubjectItem]:
        path = "/api/v1/subjects"
        return _parse_list(SubjectItem, await self._request("GET", path, params={"limit": limit}), path)

    async def get_teachers(self, limit: int = settings.list_fetch_limit) -> List[TeacherItem]:
        path = "/api/v1/teachers"
        return _parse_list(TeacherItem, await self._request("GET", path, params={"limit": limit}), path)

    async def get_teaching_assignments(self, limit: int = settings.list_fetch_limit) -> List[AssignmentRef]:
        path = "/api/v1/teaching-assignments"
        return _parse_list(AssignmentRef, await self._request("GET", path, params={"limit": limit}), path)

    async def batch_update_assignments(self, actions: Sequence[Action]) -> BatchResult:
        path = "/api/v1/teaching-assignments/batch"
        body = {"actions": [a.to_payload() for a in actions]}
        return _parse(BatchResult, await self._request("POST", path, json=body), path)

    async def get_task_status(self, task_id: str) -> TaskStatusResponse:
        path = f"/api/v1/tasks/{task_id}"
        return _parse(TaskStatusResponse, await self._request("GET", path), path)
