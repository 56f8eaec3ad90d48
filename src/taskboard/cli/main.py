#!/usr/bin/env python3
"""Entry point for the taskboard CLI."""

from __future__ import annotations

import argparse
import json
import sys
from textwrap import dedent
from typing import Any, Dict, Optional

from taskboard import __version__
from taskboard.adapters.tasks import RestTaskRemote
from taskboard.app.tasks import TaskOpResult, TaskStore
from taskboard.domain.tasks import (
    BoardColumns,
    Task,
    TaskDraft,
    TaskRecordError,
    TaskState,
    format_due_date,
    parse_due_date,
)
from taskboard.ports.tasks import TaskRemote, TaskRemoteError
from taskboard.settings import SETTINGS, RuntimeSettings
from taskboard.utils.telemetry import clear as telemetry_clear
from taskboard.utils.telemetry import recent_events
from taskboard.utils.telemetry import record_structured_event, summarize as telemetry_summarize

HELP_OVERVIEW = dedent(
    """
    Task board client for a REST task collection.

    Commands:
      - taskboard list                 - show Pending / In Progress / Completed columns
      - taskboard add --title ...      - create a pending task
      - taskboard edit ID --state ...  - replace a task's editable fields
      - taskboard delete ID            - delete a task

    Configuration:
      - TASKBOARD_API_URL      - collection endpoint (or api_url in ~/.taskboard/config.yaml)
      - TASKBOARD_HTTP_TIMEOUT - request timeout in seconds
      - TASKBOARD_TELEMETRY=0  - disable the local telemetry log
    """
)


def _settings_for(args: argparse.Namespace) -> RuntimeSettings:
    api_url = getattr(args, "api_url", None)
    if api_url:
        return SETTINGS.with_api_url(api_url)
    return SETTINGS


def _build_remote(settings: RuntimeSettings) -> TaskRemote:
    return RestTaskRemote(settings.api_url, timeout=settings.request_timeout)


def _build_store(args: argparse.Namespace) -> TaskStore:
    settings = _settings_for(args)
    return TaskStore(_build_remote(settings), settings)


def _parse_due_arg(raw: Optional[str]) -> Any:
    try:
        return parse_due_date(raw)
    except TaskRecordError as exc:
        raise ValueError(f"invalid --due value {raw!r}: expected YYYY-MM-DD") from exc


def _resolve_task(store: TaskStore, raw_id: str) -> Optional[Task]:
    for task in store.tasks:
        if str(task.id) == raw_id:
            return task
    return None


def _record_command(args: argparse.Namespace, command: str, status: str, payload: Dict[str, Any] | None = None) -> None:
    record_structured_event(
        _settings_for(args),
        f"cli.{command}",
        status=status,
        component="cli",
        level="info" if status == "ok" else "error",
        payload=payload or {},
    )


def _fail(args: argparse.Namespace, command: str, result: TaskOpResult[Any]) -> int:
    print(f"{command} failed: {result.message}", file=sys.stderr)
    _record_command(args, command, "failed", {"kind": result.error_kind})
    return 1


def _task_card(task: Task) -> list[str]:
    due = format_due_date(task.due_date) or "N/A"
    lines = [f"  [{task.id}] {task.title}"]
    if task.detail:
        lines.append(f"      {task.detail}")
    lines.append(f"      Due Date: {due}")
    return lines


def _print_columns(columns: BoardColumns) -> None:
    for state, tasks in columns.iter_columns():
        print(f"{state.label} ({len(tasks)})")
        if not tasks:
            print("  (empty)")
        for task in tasks:
            for line in _task_card(task):
                print(line)
        print()
    if columns.unclassified:
        ids = ", ".join(str(task.id) for task in columns.unclassified)
        print(f"Hidden tasks with unknown state: {ids}", file=sys.stderr)


def _columns_payload(columns: BoardColumns) -> Dict[str, Any]:
    return {
        "pending": [task.to_dict() for task in columns.pending],
        "in_progress": [task.to_dict() for task in columns.in_progress],
        "completed": [task.to_dict() for task in columns.completed],
        "unclassified": [task.to_dict() for task in columns.unclassified],
        "summary": columns.summary(),
    }


def _list_cmd(args: argparse.Namespace) -> int:
    store = _build_store(args)
    result = store.load()
    if not result.ok:
        return _fail(args, "list", result)
    columns = store.columns()
    if getattr(args, "json", False):
        print(json.dumps(_columns_payload(columns), ensure_ascii=False, indent=2))
    else:
        _print_columns(columns)
    _record_command(args, "list", "ok", columns.summary())
    return 0


def _add_cmd(args: argparse.Namespace) -> int:
    try:
        due_date = _parse_due_arg(args.due)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    store = _build_store(args)
    result = store.create(TaskDraft(title=args.title, detail=args.detail, due_date=due_date))
    if not result.ok or result.value is None:
        print(store.error, file=sys.stderr)
        _record_command(args, "add", "failed", {"kind": result.error_kind})
        return 1
    task = result.value
    print(f"Created task {task.id}: {task.title} [{task.state}]")
    _record_command(args, "add", "ok", {"task_id": task.id})
    return 0


def _edit_cmd(args: argparse.Namespace) -> int:
    changes: Dict[str, Any] = {}
    for name in ("title", "detail", "state"):
        value = getattr(args, name, None)
        if value is not None:
            changes[name] = value
    if getattr(args, "clear_due", False):
        changes["due_date"] = None
    elif args.due is not None:
        try:
            changes["due_date"] = _parse_due_arg(args.due)
        except ValueError as exc:
            print(str(exc), file=sys.stderr)
            return 2
    if not changes:
        print("edit requires at least one of --title/--detail/--state/--due/--clear-due", file=sys.stderr)
        return 2

    store = _build_store(args)
    loaded = store.load()
    if not loaded.ok:
        return _fail(args, "edit", loaded)
    task = _resolve_task(store, args.id)
    if task is None:
        print(f"task {args.id} not found", file=sys.stderr)
        return 1
    store.begin_edit(task)
    store.change_edit(**changes)
    result = store.commit_edit()
    if not result.ok:
        return _fail(args, "edit", result)
    updated = store.get(task.id)
    if updated is not None:
        print(f"Updated task {updated.id}: {updated.title} [{updated.state}]")
    _record_command(args, "edit", "ok", {"task_id": task.id, "fields": sorted(changes)})
    return 0


def _delete_cmd(args: argparse.Namespace) -> int:
    store = _build_store(args)
    loaded = store.load()
    if not loaded.ok:
        return _fail(args, "delete", loaded)
    task = _resolve_task(store, args.id)
    if task is None:
        print(f"task {args.id} not found", file=sys.stderr)
        return 1
    result = store.delete(task.id)
    if not result.ok:
        return _fail(args, "delete", result)
    print(f"Deleted task {task.id}")
    _record_command(args, "delete", "ok", {"task_id": task.id})
    return 0


def _telemetry_cmd(args: argparse.Namespace) -> int:
    settings = _settings_for(args)
    if args.telemetry_command == "report":
        events = recent_events(settings, getattr(args, "recent", 0) or 0)
        print(json.dumps(telemetry_summarize(events), indent=2, ensure_ascii=False))
        return 0
    if args.telemetry_command == "clear":
        telemetry_clear(settings)
        print("Telemetry log cleared")
        return 0
    if args.telemetry_command == "tail":
        for evt in recent_events(settings, args.limit):
            print(json.dumps(evt, ensure_ascii=False))
        return 0
    print("Unsupported telemetry command", file=sys.stderr)
    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"taskboard {__version__}")
    parser.add_argument("--api-url", help="Override the task collection URL")

    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="Show tasks grouped by state")
    list_cmd.add_argument("--json", action="store_true", help="Emit columns as JSON")
    list_cmd.set_defaults(func=_list_cmd)

    add_cmd = sub.add_parser("add", help="Create a new pending task")
    add_cmd.add_argument("--title", required=True)
    add_cmd.add_argument("--detail", required=True)
    add_cmd.add_argument("--due", required=True, metavar="YYYY-MM-DD", help="Due date")
    add_cmd.set_defaults(func=_add_cmd)

    edit_cmd = sub.add_parser("edit", help="Replace the editable fields of a task")
    edit_cmd.add_argument("id", help="Task id")
    edit_cmd.add_argument("--title")
    edit_cmd.add_argument("--detail")
    edit_cmd.add_argument("--state", choices=[state.value for state in TaskState])
    due_group = edit_cmd.add_mutually_exclusive_group()
    due_group.add_argument("--due", metavar="YYYY-MM-DD", help="New due date")
    due_group.add_argument("--clear-due", action="store_true", help="Remove the due date")
    edit_cmd.set_defaults(func=_edit_cmd)

    delete_cmd = sub.add_parser("delete", help="Delete a task")
    delete_cmd.add_argument("id", help="Task id")
    delete_cmd.set_defaults(func=_delete_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the local telemetry log")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    report_cmd = telemetry_sub.add_parser("report", help="Summarise recorded events")
    report_cmd.add_argument("--recent", type=int, default=0, help="Only summarise the last N events")
    telemetry_sub.add_parser("clear", help="Delete the telemetry log")
    tail_cmd = telemetry_sub.add_parser("tail", help="Print the last events")
    tail_cmd.add_argument("--limit", type=int, default=20)
    telemetry_cmd.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except TaskRemoteError as exc:
        # Raised while building the remote, e.g. an empty base url.
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
