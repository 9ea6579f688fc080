"""Persistent JSON settings and data-directory helpers.

Stores the database location, highlight style, and logging preferences.
Malformed or missing config falls back to defaults.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_log_dir

APP_NAME = "dips"
CONFIG_FILENAME = "config.json"
DATABASE_FILENAME = "dips.db"
LOG_FILENAME = "dips.log"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH
DEFAULT_STYLE = "monokai"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_TICK_MS = 200


def _config_path() -> Path:
    """Return the config file path, honoring ``DIPS_CONFIG`` when set."""
    override = os.environ.get("DIPS_CONFIG")
    if override:
        return Path(override)
    return CONFIG_PATH


def data_dir() -> Path:
    """Return the data directory (``DIPS_HOME`` or the platform default)."""
    override = os.environ.get("DIPS_HOME")
    if override:
        return Path(override)
    return Path(user_data_dir(APP_NAME, appauthor=False))


def log_dir() -> Path:
    """Return the log directory; it follows ``DIPS_HOME`` when that is set."""
    if os.environ.get("DIPS_HOME"):
        return data_dir()
    return Path(user_log_dir(APP_NAME, appauthor=False))


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(_config_path().read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _load_str(data: dict[str, object], key: str, default: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _load_positive_int(data: dict[str, object], key: str, default: int) -> int:
    """Read a strictly positive integer; booleans and other types are rejected."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings for one invocation."""

    database_path: Path
    log_path: Path | None
    style: str = DEFAULT_STYLE
    no_color: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    tick_ms: int = DEFAULT_TICK_MS

    @classmethod
    def load(cls) -> Settings:
        """Build settings from config file, environment, and defaults."""
        data = load_config()
        raw_db = data.get("database_path")
        if isinstance(raw_db, str) and raw_db.strip():
            database_path = Path(raw_db).expanduser()
        else:
            database_path = data_dir() / DATABASE_FILENAME

        log_level = os.environ.get("DIPS_LOG_LEVEL") or _load_str(data, "log_level", DEFAULT_LOG_LEVEL)
        no_color = data.get("no_color")
        return cls(
            database_path=database_path,
            log_path=log_dir() / LOG_FILENAME,
            style=_load_str(data, "style", DEFAULT_STYLE),
            no_color=no_color if isinstance(no_color, bool) else False,
            log_level=log_level.upper(),
            tick_ms=_load_positive_int(data, "tick_ms", DEFAULT_TICK_MS),
        )

    def database_exists(self) -> bool:
        return self.database_path.is_file()
