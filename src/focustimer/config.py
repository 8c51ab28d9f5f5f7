"""Timer configuration with JSON persistence.

Settings live in ``<home>/config.json``::

    {
        "work_duration_seconds": 1500,
        "short_break_duration_seconds": 300,
        "long_break_duration_seconds": 900,
        "sessions_until_long_break": 4,
        "auto_start_break": false,
        "sound_enabled": true,
        "desktop_notification": true
    }

Missing keys fall back to the defaults below; unknown keys are ignored.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import suppress
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from focustimer.core.timer import SessionKind


class ConfigError(Exception):
    """Raised when the configuration file cannot be read, parsed or written."""


@dataclass(frozen=True)
class TimerConfig:
    """All user-configurable timer preferences."""

    work_duration_seconds: int = 25 * 60
    short_break_duration_seconds: int = 5 * 60
    long_break_duration_seconds: int = 15 * 60
    sessions_until_long_break: int = 4
    auto_start_break: bool = False
    sound_enabled: bool = True
    desktop_notification: bool = True

    def duration_for(self, kind: SessionKind) -> int:
        if kind is SessionKind.WORK:
            return self.work_duration_seconds
        if kind is SessionKind.SHORT_BREAK:
            return self.short_break_duration_seconds
        return self.long_break_duration_seconds


_FIELD_TYPES: dict[str, type] = {
    "work_duration_seconds": int,
    "short_break_duration_seconds": int,
    "long_break_duration_seconds": int,
    "sessions_until_long_break": int,
    "auto_start_break": bool,
    "sound_enabled": bool,
    "desktop_notification": bool,
}

_DURATION_KEYS = frozenset(
    {"work_duration_seconds", "short_break_duration_seconds", "long_break_duration_seconds"}
)


def _check_value(key: str, value: Any) -> Any:
    expected = _FIELD_TYPES[key]
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{key} must be an integer, got {value!r}")
        if key in _DURATION_KEYS and value <= 0:
            raise ConfigError(f"{key} must be positive, got {value}")
    elif not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def load_config(path: Path) -> TimerConfig:
    """Load the configuration at *path*, falling back to defaults."""
    path = Path(path)
    if not path.exists():
        return TimerConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    known = {f.name for f in fields(TimerConfig)}
    values = {key: _check_value(key, value) for key, value in data.items() if key in known}
    return TimerConfig(**values)


def save_config(config: TimerConfig, path: Path) -> None:
    """Write *config* to *path* atomically."""
    path = Path(path)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".config.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json.dumps(asdict(config), indent=2) + "\n")
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None:
            with suppress(OSError):
                os.unlink(tmp_name)
        raise ConfigError(f"Cannot write {path}: {exc}") from exc


def parse_value(key: str, raw: str) -> Any:
    """Convert the command-line string *raw* to the type of *key*."""
    if key not in _FIELD_TYPES:
        raise ConfigError(f"Unknown setting '{key}'")
    if _FIELD_TYPES[key] is bool:
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise ConfigError(f"{key} must be true or false, got {raw!r}")
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from None
    return _check_value(key, value)


def set_config_value(path: Path, key: str, raw: str) -> TimerConfig:
    """Set one setting from its string form, save, and return the new config."""
    config = replace(load_config(path), **{key: parse_value(key, raw)})
    save_config(config, path)
    return config
