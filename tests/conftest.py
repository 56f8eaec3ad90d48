from __future__ import annotations

import itertools
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "taskboard-home"
os.environ.setdefault("TASKBOARD_HOME", str(SANDBOX_HOME))
os.environ.pop("TASKBOARD_API_URL", None)
os.environ.pop("TASKBOARD_HTTP_TIMEOUT", None)
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from taskboard.domain.tasks import Task, TaskDraft, TaskFields, TaskId  # noqa: E402
from taskboard.ports.tasks import TaskRemote, TaskRemoteError  # noqa: E402
from taskboard.settings import RuntimeSettings  # noqa: E402

API_URL = "http://tasks.test/api/tasks"


class FakeRemote(TaskRemote):
    """In-memory remote collection with queued failures per operation."""

    def __init__(self, records: List[Dict[str, Any]] | None = None) -> None:
        self.records: List[Dict[str, Any]] = [dict(record) for record in records or []]
        start = max((int(r["id"]) for r in self.records if isinstance(r.get("id"), int)), default=0) + 1
        self._ids = itertools.count(start)
        self._failures: Dict[str, List[TaskRemoteError]] = {}
        self.calls: List[tuple[str, Any]] = []

    def fail_next(self, operation: str, error: TaskRemoteError) -> None:
        self._failures.setdefault(operation, []).append(error)

    def _maybe_fail(self, operation: str) -> None:
        queued = self._failures.get(operation)
        if queued:
            raise queued.pop(0)

    def list_tasks(self) -> List[Task]:
        self.calls.append(("list", None))
        self._maybe_fail("list")
        return [Task.from_dict(record) for record in self.records]

    def create_task(self, draft: TaskDraft) -> Task:
        self.calls.append(("create", draft))
        self._maybe_fail("create")
        record = dict(draft.to_payload())
        record["id"] = next(self._ids)
        self.records.append(record)
        return Task.from_dict(record)

    def replace_task(self, task_id: TaskId, fields: TaskFields) -> None:
        self.calls.append(("replace", (task_id, fields)))
        self._maybe_fail("replace")
        for record in self.records:
            if record["id"] == task_id:
                record.update(fields.to_payload())

    def delete_task(self, task_id: TaskId) -> None:
        self.calls.append(("delete", task_id))
        self._maybe_fail("delete")
        self.records = [record for record in self.records if record["id"] != task_id]


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    home = tmp_path / "home"
    log_dir = home / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(home_dir=home, log_dir=log_dir, api_url=API_URL, request_timeout=5.0)


@pytest.fixture()
def sample_records() -> List[Dict[str, Any]]:
    return [
        {"id": 1, "title": "Write docs", "detail": "README", "due_date": "2026-11-01", "state": "PENDING"},
        {"id": 2, "title": "Ship release", "detail": "", "due_date": None, "state": "IN_PROGRESS"},
        {"id": 3, "title": "Fix login", "detail": "SSO bug", "due_date": "2026-10-01", "state": "COMPLETED"},
    ]


@pytest.fixture()
def fake_remote(sample_records: List[Dict[str, Any]]) -> FakeRemote:
    return FakeRemote(sample_records)


@pytest.fixture()
def make_remote():
    return FakeRemote
