"""ClickUp API client"""
from typing import Any, Callable, Dict, List, Optional, Union, TYPE_CHECKING

import requests
from pydantic import BaseModel, ValidationError

from worktree_tasks.exceptions import (
    InvalidResponseError,
    InvalidTokenError,
    MissingTokenError,
    TaskProviderError,
)
from worktree_tasks.logging_config import get_logger
from worktree_tasks.models.task import Task, TaskList, TaskStatus

if TYPE_CHECKING:
    from worktree_tasks.config import Config

logger = get_logger(__name__)


class _RawStatus(BaseModel):
    id: str
    status: str


class _RawList(BaseModel):
    id: str
    name: str


class _RawTask(BaseModel):
    id: str
    name: str
    status: _RawStatus
    list: _RawList


class _RawTaskList(BaseModel):
    tasks: List[_RawTask]


class _RawListDetails(BaseModel):
    statuses: List[_RawStatus]


def _to_task(raw: _RawTask) -> Task:
    return Task(
        id=raw.id,
        name=raw.name,
        status=TaskStatus(id=raw.status.id, label=raw.status.status),
        list=TaskList(id=raw.list.id, name=raw.list.name),
    )


class ClickupService:
    """Fetches and updates task metadata.

    Every call is blocking; the application runs them in the event loop's
    executor.
    """

    def __init__(
        self,
        config: Union["Config", dict],
        session: Optional[requests.Session] = None,
        on_invalid_payload: Optional[Callable[[str], None]] = None,
    ):
        self.api_url = config.get("clickup_api_url", "https://api.clickup.com/api/v2").rstrip("/")
        self.task_url = config.get("clickup_task_url", "https://app.clickup.com/t").rstrip("/")
        self.view_id = config.get("clickup_view_id", "")
        self.timeout = config.get("request_timeout", 30)
        self.session = session or requests.Session()
        self.on_invalid_payload = on_invalid_payload
        self._token: Optional[str] = None

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("Invalid token")
        self._token = token

    def _request(self, operation: str, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        if not self._token:
            raise MissingTokenError(operation)
        if not url:
            raise TaskProviderError(operation, "Missing request url")

        headers = {"accept": "application/json", "Authorization": self._token}
        try:
            response = self.session.request(
                method,
                f"{self.api_url}{url}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TaskProviderError(operation, str(e)) from e

        if response.status_code == 401:
            raise InvalidTokenError(operation)

        try:
            data = response.json()
        except ValueError as e:
            self._report_invalid(operation, response.text)
            raise InvalidResponseError(operation, response.text) from e

        if isinstance(data, dict) and data.get("err"):
            raise TaskProviderError(operation, str(data["err"]))
        if response.status_code >= 400:
            raise TaskProviderError(operation, f"HTTP {response.status_code}")
        return data

    def _validate(self, operation: str, schema, data: Any):
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            logger.warning(f"[ClickUp] {operation} returned an unexpected payload: {e}")
            self._report_invalid(operation, data)
            raise InvalidResponseError(operation, data) from e

    def _report_invalid(self, operation: str, payload: Any) -> None:
        if self.on_invalid_payload:
            self.on_invalid_payload(f"[invalid-response] {operation}: {payload!r}")

    def get_task(self, task_id: str) -> Task:
        if not task_id:
            raise TaskProviderError("get_task", "Missing task id")
        data = self._request("get_task", "GET", f"/task/{task_id}")
        return _to_task(self._validate("get_task", _RawTask, data))

    def get_task_list(self, view_id: Optional[str] = None) -> List[Task]:
        data = self._request("get_task_list", "GET", f"/view/{view_id or self.view_id}/task")
        raw = self._validate("get_task_list", _RawTaskList, data)
        return [_to_task(task) for task in raw.tasks]

    def update_task(self, task_id: str, status: str) -> None:
        """Move a task to the status with the given label."""
        self._request("update_task", "PUT", f"/task/{task_id}", {"status": status})
        logger.info(f"[ClickUp] Task {task_id} moved to '{status}'")

    def get_statuses(self, list_id: str) -> List[TaskStatus]:
        data = self._request("get_statuses", "GET", f"/list/{list_id}")
        raw = self._validate("get_statuses", _RawListDetails, data)
        return [TaskStatus(id=status.id, label=status.status) for status in raw.statuses]

    def get_task_url(self, task_id: str) -> str:
        return f"{self.task_url}/{task_id}"
