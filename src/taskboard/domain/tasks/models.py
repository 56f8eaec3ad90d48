"""Domain models for the task board and its status columns."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

TaskId = Union[int, str]

_CORE_FIELDS = ("id", "title", "detail", "due_date", "state")


class TaskRecordError(ValueError):
    """Raised when a task payload is invalid."""


class EditSessionError(RuntimeError):
    """Raised when an edit operation runs without an active session."""


class TaskState(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @classmethod
    def parse(cls, raw: Any) -> Optional["TaskState"]:
        """Return the member matching ``raw`` exactly, or ``None``."""

        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return None


_STATE_LABELS = {
    TaskState.PENDING: "Pending",
    TaskState.IN_PROGRESS: "In Progress",
    TaskState.COMPLETED: "Completed",
}


def parse_due_date(raw: Any) -> Optional[date]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise TaskRecordError(f"task due_date must be an ISO date string, got {raw!r}")
    text = raw.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    # Datetime serializers send "2026-11-01T00:00:00Z"; only the calendar day matters.
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise TaskRecordError(f"task due_date invalid: {raw!r}") from exc


def format_due_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class TaskFields:
    """The editable part of a task; always sent as a full record on update."""

    title: str
    detail: str
    state: str
    due_date: Optional[date] = None

    def validate(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise TaskRecordError("task title must not be blank")
        if TaskState.parse(self.state) is None:
            raise TaskRecordError(f"task state {self.state!r} is not one of {', '.join(s.value for s in TaskState)}")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "detail": self.detail,
            "state": self.state,
            "due_date": format_due_date(self.due_date),
        }


@dataclass(frozen=True)
class TaskDraft:
    title: str
    detail: str
    due_date: Optional[date] = None

    def to_payload(self) -> Dict[str, Any]:
        # New tasks always start pending; the caller does not choose the state.
        return {
            "title": self.title,
            "detail": self.detail,
            "due_date": format_due_date(self.due_date),
            "state": TaskState.PENDING.value,
        }


@dataclass(frozen=True)
class Task:
    """A task as last confirmed by the remote collection."""

    id: TaskId
    title: str
    detail: str = ""
    state: str = TaskState.PENDING.value
    due_date: Optional[date] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.id is None or (isinstance(self.id, str) and not self.id.strip()):
            raise TaskRecordError("task id must be present")
        if not isinstance(self.title, str) or not self.title.strip():
            raise TaskRecordError("task title missing or invalid")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Task":
        if not isinstance(payload, Mapping):
            raise TaskRecordError("task entry must be an object")
        if "id" not in payload:
            raise TaskRecordError("task entry missing id")
        detail = payload.get("detail")
        state = payload.get("state")
        extra = {k: v for k, v in payload.items() if k not in _CORE_FIELDS}
        try:
            due_date = parse_due_date(payload.get("due_date"))
        except TaskRecordError:
            # An unreadable due date must not reject the record; it is kept verbatim.
            due_date = None
            extra["due_date"] = payload["due_date"]
        return cls(
            id=payload["id"],
            title=payload.get("title"),  # type: ignore[arg-type]
            detail="" if detail is None else str(detail),
            state="" if state is None else str(state),
            due_date=due_date,
            extra=extra,
        )

    @property
    def raw_due_date(self) -> Any:
        """The wire form of the due date, or the unreadable server value."""

        if self.due_date is not None:
            return format_due_date(self.due_date)
        return self.extra.get("due_date")

    @property
    def known_state(self) -> Optional[TaskState]:
        return TaskState.parse(self.state)

    @property
    def fields(self) -> TaskFields:
        return TaskFields(
            title=self.title,
            detail=self.detail,
            state=self.state,
            due_date=self.due_date,
        )

    def merged(self, fields: TaskFields) -> "Task":
        """Shallow-merge ``fields`` over this task, keeping id and extras."""

        return replace(
            self,
            title=fields.title,
            detail=fields.detail,
            state=fields.state,
            due_date=fields.due_date,
            extra={k: v for k, v in self.extra.items() if k != "due_date"},
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "id": self.id,
                "title": self.title,
                "detail": self.detail,
                "due_date": self.raw_due_date,
                "state": self.state,
            }
        )
        return payload


@dataclass(frozen=True)
class EditSession:
    task_id: TaskId
    fields: TaskFields

    @classmethod
    def begin(cls, task: Task) -> "EditSession":
        return cls(task_id=task.id, fields=task.fields)

    def change(self, **changes: Any) -> "EditSession":
        unknown = set(changes) - {"title", "detail", "state", "due_date"}
        if unknown:
            raise EditSessionError(f"unknown edit fields: {', '.join(sorted(unknown))}")
        if "state" in changes:
            state = TaskState.parse(changes["state"])
            if state is None:
                raise EditSessionError(f"unknown task state: {changes['state']!r}")
            changes["state"] = state.value
        if "due_date" in changes:
            changes["due_date"] = parse_due_date(changes["due_date"])
        return replace(self, fields=replace(self.fields, **changes))


@dataclass(frozen=True)
class BoardColumns:
    pending: Tuple[Task, ...]
    in_progress: Tuple[Task, ...]
    completed: Tuple[Task, ...]
    unclassified: Tuple[Task, ...] = ()

    def column(self, state: TaskState) -> Tuple[Task, ...]:
        if state is TaskState.PENDING:
            return self.pending
        if state is TaskState.IN_PROGRESS:
            return self.in_progress
        return self.completed

    def iter_columns(self) -> Iterable[Tuple[TaskState, Tuple[Task, ...]]]:
        for state in TaskState:
            yield state, self.column(state)

    def summary(self) -> Dict[str, int]:
        return {
            "pending": len(self.pending),
            "in_progress": len(self.in_progress),
            "completed": len(self.completed),
            "unclassified": len(self.unclassified),
        }


def partition_by_state(tasks: Iterable[Task]) -> BoardColumns:
    buckets: Dict[TaskState, List[Task]] = {state: [] for state in TaskState}
    unclassified: List[Task] = []
    for task in tasks:
        state = task.known_state
        if state is None:
            unclassified.append(task)
            continue
        buckets[state].append(task)
    return BoardColumns(
        pending=tuple(buckets[TaskState.PENDING]),
        in_progress=tuple(buckets[TaskState.IN_PROGRESS]),
        completed=tuple(buckets[TaskState.COMPLETED]),
        unclassified=tuple(unclassified),
    )
