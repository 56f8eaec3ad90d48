from __future__ import annotations

import json
from datetime import date

import jsonschema
import pytest

from taskboard.settings import RuntimeSettings
from taskboard.utils import telemetry


def _failure(settings: RuntimeSettings, event: str, kind: str, error: str, status: str = "failed") -> None:
    telemetry.record_structured_event(
        settings,
        event,
        level="error",
        status=status,
        component="tasks",
        payload={"error": error, "kind": kind},
        duration_ms=1.5,
    )


def test_summary_counts_failed_operations_by_kind(runtime_settings: RuntimeSettings) -> None:
    _failure(runtime_settings, "tasks.load", "transport", "GET failed: 503")
    _failure(runtime_settings, "tasks.create", "validation", "Title already exists.")
    _failure(runtime_settings, "tasks.update", "validation", "task title must not be blank", status="rejected")
    telemetry.record_structured_event(runtime_settings, "cli.list", status="ok", payload={"pending": 1})

    events = list(telemetry.iter_events(runtime_settings))
    assert [evt["event"] for evt in events] == ["tasks.load", "tasks.create", "tasks.update", "cli.list"]
    assert events[0]["durationMs"] == 1.5

    summary = telemetry.summarize(events)
    assert summary["total"] == 4
    assert summary["by_event"]["cli.list"] == 1
    assert summary["failures"] == {"tasks.load": 1, "tasks.create": 1, "tasks.update": 1}
    assert summary["by_kind"] == {"transport": 1, "validation": 2}
    assert summary["last_failure"]["event"] == "tasks.update"
    assert summary["last_failure"]["error"] == "task title must not be blank"


def test_summary_of_empty_log() -> None:
    assert telemetry.summarize([]) == {
        "total": 0,
        "by_event": {},
        "failures": {},
        "by_kind": {},
        "last_failure": None,
    }


def test_recent_events_keeps_the_tail(runtime_settings: RuntimeSettings) -> None:
    for name in ("cli.list", "cli.add", "cli.delete"):
        telemetry.record_structured_event(runtime_settings, name)
    assert [evt["event"] for evt in telemetry.recent_events(runtime_settings, 2)] == ["cli.add", "cli.delete"]
    assert len(telemetry.recent_events(runtime_settings, 0)) == 3


def test_iter_events_skips_corrupt_lines(runtime_settings: RuntimeSettings) -> None:
    path = telemetry.log_path(runtime_settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text('{"event": "ok"}\nnot json\n\n', encoding="utf-8")
    assert list(telemetry.iter_events(runtime_settings)) == [{"event": "ok"}]


def test_iter_events_without_log(tmp_path) -> None:
    settings = RuntimeSettings(home_dir=tmp_path, log_dir=tmp_path / "missing")
    assert list(telemetry.iter_events(settings)) == []


def test_disabled_telemetry_writes_nothing(runtime_settings: RuntimeSettings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKBOARD_TELEMETRY", "off")
    telemetry.record_structured_event(runtime_settings, "cli.list")
    assert not telemetry.log_path(runtime_settings).exists()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"level": "debug"},
        {"duration_ms": -1.0},
    ],
)
def test_malformed_record_fails_schema(runtime_settings: RuntimeSettings, kwargs) -> None:
    with pytest.raises(jsonschema.ValidationError):
        telemetry.record_structured_event(runtime_settings, "tasks.load", **kwargs)
    assert not telemetry.log_path(runtime_settings).exists()


def test_blank_event_name_fails_schema(runtime_settings: RuntimeSettings) -> None:
    with pytest.raises(jsonschema.ValidationError):
        telemetry.record_structured_event(runtime_settings, "   ")


def test_clear_removes_log(runtime_settings: RuntimeSettings) -> None:
    telemetry.record_structured_event(runtime_settings, "cli.add")
    telemetry.clear(runtime_settings)
    assert list(telemetry.iter_events(runtime_settings)) == []


def test_non_json_payload_values_are_stringified(runtime_settings: RuntimeSettings) -> None:
    telemetry.record_structured_event(runtime_settings, "tasks.update", payload={"due_date": date(2026, 1, 2)})
    line = telemetry.log_path(runtime_settings).read_text(encoding="utf-8").strip()
    assert json.loads(line)["payload"]["due_date"] == "2026-01-02"
