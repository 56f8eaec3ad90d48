"""REST adapter for the remote task collection."""

from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import quote

import requests

from taskboard.domain.tasks import Task, TaskDraft, TaskFields, TaskId, TaskRecordError
from taskboard.ports.tasks.remote import TaskRemote, TaskRemoteError, TaskValidationError

DEFAULT_TIMEOUT = 30.0


class RestTaskRemote(TaskRemote):
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise TaskRemoteError("rest remote requires a base url")
        self._base_url = base_url.strip().rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._base_url

    def list_tasks(self) -> List[Task]:
        payload = self._request("GET", self._base_url)
        if not isinstance(payload, list):
            raise TaskRemoteError("task list response must be an array")
        return [self._to_task(entry) for entry in payload]

    def create_task(self, draft: TaskDraft) -> Task:
        payload = self._request("POST", self._base_url, json=draft.to_payload())
        if not isinstance(payload, dict):
            raise TaskRemoteError("create response must be a task object")
        return self._to_task(payload)

    def replace_task(self, task_id: TaskId, fields: TaskFields) -> None:
        self._request("PUT", self._item_url(task_id), json=fields.to_payload(), expect_body=False)

    def delete_task(self, task_id: TaskId) -> None:
        self._request("DELETE", self._item_url(task_id), expect_body=False)

    def _item_url(self, task_id: TaskId) -> str:
        return f"{self._base_url}/{quote(str(task_id), safe='')}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        json: Dict[str, Any] | None = None,
        expect_body: bool = True,
    ) -> Any:
        headers = {"Accept": "application/json"}
        try:
            response = self._session.request(method, url, json=json, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TaskRemoteError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 400:
            raise _error_from_response(method, url, response)
        if not expect_body:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TaskRemoteError(f"{method} {url} returned invalid JSON") from exc

    @staticmethod
    def _to_task(entry: Any) -> Task:
        try:
            return Task.from_dict(entry)
        except TaskRecordError as exc:
            raise TaskRemoteError(str(exc)) from exc


def _error_from_response(method: str, url: str, response: requests.Response) -> TaskRemoteError:
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("title")
        if isinstance(message, list):
            message = " ".join(str(item) for item in message if item)
        # A field-level message on ``title`` is shown to the user verbatim.
        if isinstance(message, str) and message:
            return TaskValidationError(message, status_code=status)
    return TaskRemoteError(f"{method} {url} failed: {status} {response.text}", status_code=status)
