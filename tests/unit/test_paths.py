"""Tests for platform paths and event log naming."""

from datetime import datetime
from pathlib import Path

import pytest

from claude_mergetool.paths import (
    LOG_DIR_ENV,
    default_config_path,
    default_log_dir,
    event_log_name,
    format_timestamp,
    sanitize_filepath,
)


@pytest.fixture
def home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the home directory at a temp dir and clear path overrides."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    for name in (LOG_DIR_ENV, "XDG_STATE_HOME", "XDG_CONFIG_HOME", "LOCALAPPDATA", "APPDATA"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_log_dir_env_override(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """The environment override wins on every platform."""
    monkeypatch.setenv(LOG_DIR_ENV, str(home / "custom"))
    monkeypatch.setattr("sys.platform", "darwin")

    assert default_log_dir() == home / "custom"


def test_log_dir_linux(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """Linux logs live under the XDG state directory."""
    monkeypatch.setattr("sys.platform", "linux")

    assert default_log_dir() == home / ".local" / "state" / "claude-mergetool" / "logs"

    monkeypatch.setenv("XDG_STATE_HOME", str(home / "state"))
    assert default_log_dir() == home / "state" / "claude-mergetool" / "logs"


def test_log_dir_macos(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """macOS logs live in ~/Library/Logs."""
    monkeypatch.setattr("sys.platform", "darwin")

    assert default_log_dir() == home / "Library" / "Logs" / "claude-mergetool"


def test_log_dir_windows(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """Windows logs need LOCALAPPDATA."""
    monkeypatch.setattr("sys.platform", "win32")

    assert default_log_dir() is None

    monkeypatch.setenv("LOCALAPPDATA", str(home / "Local"))
    assert default_log_dir() == home / "Local" / "claude-mergetool" / "logs"


def test_config_path_linux(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """Linux config follows XDG_CONFIG_HOME."""
    monkeypatch.setattr("sys.platform", "linux")

    assert default_config_path() == home / ".config" / "claude-mergetool" / "config.toml"

    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / "cfg"))
    assert default_config_path() == home / "cfg" / "claude-mergetool" / "config.toml"


def test_config_path_macos(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """macOS config lives in Application Support."""
    monkeypatch.setattr("sys.platform", "darwin")

    assert default_config_path() == (
        home / "Library" / "Application Support" / "claude-mergetool" / "config.toml"
    )


def test_config_path_windows(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """Windows config needs APPDATA."""
    monkeypatch.setattr("sys.platform", "win32")

    assert default_config_path() is None

    monkeypatch.setenv("APPDATA", str(home / "Roaming"))
    assert default_config_path() == home / "Roaming" / "claude-mergetool" / "config.toml"


@pytest.mark.parametrize("platform", ["linux", "darwin"])
def test_no_home_directory(
    monkeypatch: pytest.MonkeyPatch, home: Path, platform: str
) -> None:
    """Without a home directory the platform locations are unknown."""
    monkeypatch.setattr("sys.platform", platform)

    def no_home() -> Path:
        raise RuntimeError("Could not determine home directory.")

    monkeypatch.setattr(Path, "home", staticmethod(no_home))

    assert default_log_dir() is None
    assert default_config_path() is None


def test_xdg_dirs_do_not_need_home(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    """XDG overrides are used even when the home directory is unknown."""
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setenv("XDG_STATE_HOME", str(home / "state"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / "config"))

    def no_home() -> Path:
        raise RuntimeError("Could not determine home directory.")

    monkeypatch.setattr(Path, "home", staticmethod(no_home))

    assert default_log_dir() == home / "state" / "claude-mergetool" / "logs"
    assert default_config_path() == home / "config" / "claude-mergetool" / "config.toml"


def test_format_timestamp() -> None:
    """Timestamps contain no colons."""
    assert format_timestamp(datetime(2025, 11, 30, 23, 59, 1)) == "2025-11-30T23-59-01"


def test_sanitize_filepath() -> None:
    """Separators and spaces become underscores."""
    assert sanitize_filepath("src/my file.rs") == "src_my_file.rs"
    assert sanitize_filepath("C:\\work\\a.txt") == "C:_work_a.txt"


def test_event_log_name() -> None:
    """The file name combines the timestamp and the sanitized label."""
    now = datetime(2025, 1, 2, 3, 4, 5)

    assert event_log_name("src/lib.rs", now) == "2025-01-02T03-04-05_src_lib.rs.jsonl"
    assert event_log_name(None, now) == "2025-01-02T03-04-05_unknown.jsonl"
    assert event_log_name("", now) == "2025-01-02T03-04-05_unknown.jsonl"
