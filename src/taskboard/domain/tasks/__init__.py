"""Task domain exports."""

from .models import (
    BoardColumns,
    EditSession,
    EditSessionError,
    Task,
    TaskDraft,
    TaskFields,
    TaskId,
    TaskRecordError,
    TaskState,
    format_due_date,
    parse_due_date,
    partition_by_state,
)

__all__ = [
    "BoardColumns",
    "EditSession",
    "EditSessionError",
    "Task",
    "TaskDraft",
    "TaskFields",
    "TaskId",
    "TaskRecordError",
    "TaskState",
    "format_due_date",
    "parse_due_date",
    "partition_by_state",
]
