from __future__ import annotations

from pathlib import Path

import pytest

from taskboard import settings as settings_module
from taskboard.settings import DEFAULT_API_URL, SettingsError, load_settings


@pytest.fixture()
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "taskboard-home"
    home.mkdir()
    monkeypatch.setenv("TASKBOARD_HOME", str(home))
    monkeypatch.delenv("TASKBOARD_API_URL", raising=False)
    monkeypatch.delenv("TASKBOARD_HTTP_TIMEOUT", raising=False)
    return home


def test_defaults(home: Path) -> None:
    settings = load_settings()
    assert settings.home_dir == home
    assert settings.log_dir == home / "logs"
    assert settings.api_url == DEFAULT_API_URL
    assert settings.request_timeout == settings_module.DEFAULT_TIMEOUT


def test_config_file_values(home: Path) -> None:
    (home / "config.yaml").write_text("api_url: http://board.test/tasks\nrequest_timeout: 12\n", encoding="utf-8")
    settings = load_settings()
    assert settings.api_url == "http://board.test/tasks"
    assert settings.request_timeout == 12.0


def test_environment_overrides_config_file(home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (home / "config.yaml").write_text("api_url: http://board.test/tasks\n", encoding="utf-8")
    monkeypatch.setenv("TASKBOARD_API_URL", "http://env.test/tasks")
    monkeypatch.setenv("TASKBOARD_HTTP_TIMEOUT", "2.5")
    settings = load_settings()
    assert settings.api_url == "http://env.test/tasks"
    assert settings.request_timeout == 2.5


def test_invalid_timeout(home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKBOARD_HTTP_TIMEOUT", "soon")
    with pytest.raises(SettingsError):
        load_settings()


def test_config_file_must_be_mapping(home: Path) -> None:
    (home / "config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings()


def test_with_api_url_keeps_other_fields(home: Path) -> None:
    settings = load_settings()
    override = settings.with_api_url("http://other.test")
    assert override.api_url == "http://other.test"
    assert override.log_dir == settings.log_dir
