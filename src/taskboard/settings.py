"""Runtime settings for the task board client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict

import yaml

from taskboard import __version__

DEFAULT_API_URL = "http://localhost:8000/api/tasks"
DEFAULT_TIMEOUT = 30.0
CONFIG_FILE = "config.yaml"


class SettingsError(RuntimeError):
    """Raised when runtime configuration cannot be resolved."""


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    log_dir: Path
    api_url: str = DEFAULT_API_URL
    request_timeout: float = DEFAULT_TIMEOUT
    cli_version: str = __version__

    @property
    def config_file(self) -> Path:
        return self.home_dir / CONFIG_FILE

    def with_api_url(self, api_url: str) -> "RuntimeSettings":
        return replace(self, api_url=api_url)


def _default_home_dir() -> Path:
    raw = os.environ.get("TASKBOARD_HOME")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".taskboard"


def _load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"settings.config_invalid: {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SettingsError(f"settings.config_invalid: {path} root must be a mapping")
    return payload


def _parse_timeout(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"settings.timeout_invalid: {raw!r}") from exc
    if value <= 0:
        raise SettingsError(f"settings.timeout_invalid: {raw!r} must be positive")
    return value


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    file_config = _load_config_file(base / CONFIG_FILE)

    api_url = os.environ.get("TASKBOARD_API_URL") or file_config.get("api_url") or DEFAULT_API_URL
    raw_timeout = os.environ.get("TASKBOARD_HTTP_TIMEOUT") or file_config.get("request_timeout")
    timeout = DEFAULT_TIMEOUT if raw_timeout in (None, "") else _parse_timeout(raw_timeout)

    return RuntimeSettings(
        home_dir=base,
        log_dir=base / "logs",
        api_url=str(api_url),
        request_timeout=timeout,
    )


SETTINGS = load_settings()
