"""Task-board event log: one JSON object per line under ``<log_dir>/telemetry.jsonl``.

The store writes ``tasks.<op>`` events when a remote operation fails and the CLI
writes one ``cli.<command>`` event per invocation. :func:`summarize` folds the
log into per-operation failure counts for ``taskboard telemetry report``.
"""

from __future__ import annotations

import json
import os
import time
from collections import deque
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator

import jsonschema

from taskboard.resources import load_telemetry_schema
from taskboard.settings import RuntimeSettings

LOG_FILE = "telemetry.jsonl"

FAILURE_STATUSES = {"failed", "rejected"}

_DISABLE_VALUES = {"0", "false", "no", "off"}


def telemetry_enabled() -> bool:
    return os.getenv("TASKBOARD_TELEMETRY", "1").lower() not in _DISABLE_VALUES


def log_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / LOG_FILE


def record_structured_event(
    settings: RuntimeSettings,
    event: str,
    *,
    payload: dict[str, Any] | None = None,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    duration_ms: float | None = None,
) -> None:
    """Append one event; raises ``jsonschema.ValidationError`` for a malformed record."""

    if not telemetry_enabled():
        return
    record: dict[str, Any] = {"ts": time.time(), "event": event, "payload": payload or {}, "level": level}
    if status:
        record["status"] = status
    if component:
        record["component"] = component
    if duration_ms is not None:
        record["durationMs"] = duration_ms
    # Round-trip first so dates and other payload values validate as the strings they are stored as.
    line = json.dumps(record, ensure_ascii=False, default=str)
    _validator().validate(json.loads(line))
    path = log_path(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(line + "\n")


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    path = log_path(settings)
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue


def recent_events(settings: RuntimeSettings, limit: int) -> list[dict[str, Any]]:
    if limit <= 0:
        return list(iter_events(settings))
    return list(deque(iter_events(settings), maxlen=limit))


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Count events, failed operations per event name and failures per error kind."""

    total = 0
    by_event: dict[str, int] = {}
    failures: dict[str, int] = {}
    by_kind: dict[str, int] = {}
    last_failure: dict[str, Any] | None = None
    for evt in events:
        total += 1
        name = evt.get("event", "unknown")
        by_event[name] = by_event.get(name, 0) + 1
        if evt.get("status") not in FAILURE_STATUSES:
            continue
        failures[name] = failures.get(name, 0) + 1
        payload = evt.get("payload") if isinstance(evt.get("payload"), dict) else {}
        kind = payload.get("kind")
        if kind:
            by_kind[kind] = by_kind.get(kind, 0) + 1
        last_failure = {"event": name, "ts": evt.get("ts"), "error": payload.get("error")}
    return {
        "total": total,
        "by_event": by_event,
        "failures": failures,
        "by_kind": by_kind,
        "last_failure": last_failure,
    }


def clear(settings: RuntimeSettings) -> None:
    path = log_path(settings)
    if path.exists():
        path.unlink()


@lru_cache(maxsize=1)
def _validator() -> jsonschema.Draft202012Validator:
    return jsonschema.Draft202012Validator(load_telemetry_schema())
