"""Application store keeping the local task collection in sync with the remote one."""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from taskboard.domain.tasks import (
    BoardColumns,
    EditSession,
    EditSessionError,
    Task,
    TaskDraft,
    TaskFields,
    TaskId,
    TaskRecordError,
    partition_by_state,
)
from taskboard.ports.tasks.remote import TaskRemote, TaskRemoteError, TaskValidationError
from taskboard.settings import RuntimeSettings
from taskboard.utils.telemetry import record_structured_event

CREATE_FALLBACK_MESSAGE = "Failed to add task."

ERROR_VALIDATION = "validation"
ERROR_TRANSPORT = "transport"

T = TypeVar("T")


@dataclass(frozen=True)
class TaskOpResult(Generic[T]):
    """Outcome of a store operation: a value on success, a typed error otherwise."""

    ok: bool
    value: Optional[T] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "TaskOpResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error_kind: str, message: str) -> "TaskOpResult[T]":
        return cls(ok=False, error_kind=error_kind, message=message)

    @property
    def is_validation_error(self) -> bool:
        return self.error_kind == ERROR_VALIDATION

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"ok": self.ok}
        if not self.ok:
            payload["error"] = {"kind": self.error_kind, "message": self.message}
        return payload


class TaskStore:
    """Owns the cached task collection, the edit session and the create error slot.

    Every remote operation catches its own failure: the local collection is
    only touched after the remote call succeeded, and failures are reported
    to telemetry (and, for create, to :attr:`error`).
    """

    def __init__(self, remote: TaskRemote, settings: RuntimeSettings) -> None:
        self._remote = remote
        self._settings = settings
        self._tasks: List[Task] = []
        self._edit_session: Optional[EditSession] = None
        self._error: str = ""

    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def edit_session(self) -> Optional[EditSession]:
        return self._edit_session

    @property
    def error(self) -> str:
        return self._error

    def get(self, task_id: TaskId) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # -------------------- remote operations --------------------

    def load(self) -> TaskOpResult[Tuple[Task, ...]]:
        started = time.perf_counter()
        try:
            tasks = self._remote.list_tasks()
        except TaskRemoteError as exc:
            return self._report_failure("tasks.load", exc, started)
        self._tasks = list(tasks)
        return TaskOpResult.success(self.tasks)

    def create(self, draft: TaskDraft) -> TaskOpResult[Task]:
        started = time.perf_counter()
        try:
            created = self._remote.create_task(draft)
        except TaskValidationError as exc:
            self._error = str(exc)
            return self._report_failure("tasks.create", exc, started)
        except TaskRemoteError as exc:
            self._error = CREATE_FALLBACK_MESSAGE
            self._report_failure("tasks.create", exc, started)
            return TaskOpResult.failure(ERROR_TRANSPORT, CREATE_FALLBACK_MESSAGE)
        self._tasks.append(created)
        self._error = ""
        return TaskOpResult.success(created)

    def update(self, task_id: TaskId, fields: TaskFields) -> TaskOpResult[Task]:
        started = time.perf_counter()
        try:
            fields.validate()
        except TaskRecordError as exc:
            self._emit(
                "tasks.update",
                level="error",
                status="rejected",
                payload={"error": str(exc), "kind": ERROR_VALIDATION, "task_id": task_id},
            )
            return TaskOpResult.failure(ERROR_VALIDATION, str(exc))
        try:
            self._remote.replace_task(task_id, fields)
        except TaskRemoteError as exc:
            return self._report_failure("tasks.update", exc, started, task_id=task_id)
        merged: Optional[Task] = None
        updated: List[Task] = []
        for task in self._tasks:
            if task.id == task_id:
                task = task.merged(fields)
                merged = task
            updated.append(task)
        self._tasks = updated
        return TaskOpResult.success(merged)

    def delete(self, task_id: TaskId) -> TaskOpResult[TaskId]:
        started = time.perf_counter()
        try:
            self._remote.delete_task(task_id)
        except TaskRemoteError as exc:
            return self._report_failure("tasks.delete", exc, started, task_id=task_id)
        self._tasks = [task for task in self._tasks if task.id != task_id]
        return TaskOpResult.success(task_id)

    # -------------------- edit session --------------------

    def begin_edit(self, task: Task) -> EditSession:
        self._edit_session = EditSession.begin(task)
        return self._edit_session

    def change_edit(self, **changes: Any) -> EditSession:
        if self._edit_session is None:
            raise EditSessionError("no active edit session")
        self._edit_session = self._edit_session.change(**changes)
        return self._edit_session

    def cancel_edit(self) -> None:
        self._edit_session = None

    def commit_edit(self) -> TaskOpResult[Task]:
        session = self._edit_session
        if session is None:
            return TaskOpResult.failure(ERROR_VALIDATION, "no active edit session")
        result = self.update(session.task_id, session.fields)
        if result.ok:
            self._edit_session = None
        return result

    # -------------------- derived views --------------------

    def columns(self) -> BoardColumns:
        columns = partition_by_state(self._tasks)
        if columns.unclassified:
            self._emit(
                "tasks.unclassified",
                level="warn",
                status="skipped",
                payload={
                    "count": len(columns.unclassified),
                    "tasks": [{"id": task.id, "state": task.state} for task in columns.unclassified],
                },
            )
        return columns

    def _report_failure(
        self,
        event: str,
        exc: TaskRemoteError,
        started: float,
        *,
        task_id: TaskId | None = None,
    ) -> TaskOpResult[Any]:
        error_kind = ERROR_VALIDATION if isinstance(exc, TaskValidationError) else ERROR_TRANSPORT
        payload: Dict[str, Any] = {"error": str(exc), "kind": error_kind}
        if exc.status_code is not None:
            payload["status_code"] = exc.status_code
        if task_id is not None:
            payload["task_id"] = task_id
        self._emit(
            event,
            level="error",
            status="failed",
            payload=payload,
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return TaskOpResult.failure(error_kind, str(exc))

    def _emit(self, event: str, **kwargs: Any) -> None:
        # A broken telemetry sink must not turn a handled failure into an exception.
        try:
            record_structured_event(self._settings, event, component="tasks", **kwargs)
        except OSError as exc:
            warnings.warn(f"telemetry unavailable: {exc}", RuntimeWarning, stacklevel=3)
