"""Port for the remote task collection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from taskboard.domain.tasks import Task, TaskDraft, TaskFields, TaskId


class TaskRemoteError(RuntimeError):
    """Raised when the remote collection is unreachable or answers unexpectedly."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TaskValidationError(TaskRemoteError):
    """Raised when the remote collection rejects a record with a field message."""


class TaskRemote(ABC):
    """Abstract remote collection the task store synchronises against."""

    @abstractmethod
    def list_tasks(self) -> List[Task]:
        """Return the full remote collection."""

    @abstractmethod
    def create_task(self, draft: TaskDraft) -> Task:
        """Create a task and return it with its server-assigned id."""

    @abstractmethod
    def replace_task(self, task_id: TaskId, fields: TaskFields) -> None:
        """Replace the full editable record of ``task_id``."""

    @abstractmethod
    def delete_task(self, task_id: TaskId) -> None:
        """Delete ``task_id`` from the remote collection."""
