"""Platform-specific locations for claude-mergetool logs and config."""

from __future__ import annotations

import os
import sys
from datetime import datetime
from pathlib import Path

APP_NAME = "claude-mergetool"

LOG_DIR_ENV = "CLAUDE_MERGETOOL_LOG_DIR"

SUMMARY_LOG_NAME = "summary.jsonl"
UNKNOWN_LABEL = "unknown"


def _env_path(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value) if value else None


def _home() -> Path | None:
    try:
        return Path.home()
    except RuntimeError:
        return None


def default_log_dir() -> Path | None:
    """Resolve the log directory without creating it.

    - ``$CLAUDE_MERGETOOL_LOG_DIR`` if set
    - macOS: ``~/Library/Logs/claude-mergetool``
    - Windows: ``%LOCALAPPDATA%\\claude-mergetool\\logs``
    - Otherwise: ``$XDG_STATE_HOME/claude-mergetool/logs``
      (``~/.local/state`` when unset)

    Returns:
        The directory, or None if the platform location can't be determined.
    """
    override = _env_path(LOG_DIR_ENV)
    if override is not None:
        return override

    if sys.platform == "win32":
        local = _env_path("LOCALAPPDATA")
        return local / APP_NAME / "logs" if local else None

    state = _env_path("XDG_STATE_HOME") if sys.platform != "darwin" else None
    if state is None:
        home = _home()
        if home is None:
            return None
        if sys.platform == "darwin":
            return home / "Library" / "Logs" / APP_NAME
        state = home / ".local" / "state"
    return state / APP_NAME / "logs"


def default_config_path() -> Path | None:
    """Resolve the default ``config.toml`` location.

    Returns:
        The path, or None if the platform location can't be determined.
    """
    if sys.platform == "win32":
        appdata = _env_path("APPDATA")
        return appdata / APP_NAME / "config.toml" if appdata else None

    config = _env_path("XDG_CONFIG_HOME") if sys.platform != "darwin" else None
    if config is None:
        home = _home()
        if home is None:
            return None
        if sys.platform == "darwin":
            return home / "Library" / "Application Support" / APP_NAME / "config.toml"
        config = home / ".config"
    return config / APP_NAME / "config.toml"


def format_timestamp(now: datetime | None = None) -> str:
    """Local-time timestamp safe for file names.

    Example:
        >>> format_timestamp(datetime(2024, 1, 2, 3, 4, 5))
        '2024-01-02T03-04-05'
    """
    now = now or datetime.now().astimezone()
    return now.strftime("%Y-%m-%dT%H-%M-%S")


def sanitize_filepath(path: str) -> str:
    """Flatten a path into a file-name component.

    Example:
        >>> sanitize_filepath("path\\\\to my/file.rs")
        'path_to_my_file.rs'
    """
    return path.replace("/", "_").replace("\\", "_").replace(" ", "_")


def event_log_name(label: str | None, now: datetime | None = None) -> str:
    """File name of a run's event log: ``{timestamp}_{sanitized label}.jsonl``."""
    sanitized = sanitize_filepath(label or "") or UNKNOWN_LABEL
    return f"{format_timestamp(now)}_{sanitized}.jsonl"
