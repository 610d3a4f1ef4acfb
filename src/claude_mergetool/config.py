"""Configuration schema for claude-mergetool."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from claude_mergetool.exceptions import ConfigError
from claude_mergetool.paths import default_config_path

logger = structlog.get_logger()

DEFAULT_PERMISSION_MODE = "acceptEdits"

# Commented template written by `generate-config`
DEFAULT_CONFIG_TEMPLATE_PATH = Path(__file__).parent / "config.toml"


class MergetoolConfig(BaseModel):
    """User configuration, read from ``config.toml``.

    Unknown keys are rejected so typos don't silently do nothing.

    Attributes:
        permission_mode: Override for ``claude --permission-mode``.
        extra_args: Additional arguments passed to ``claude``.
        extra_system_prompt: Text appended to the default system prompt.

    Example:
        >>> MergetoolConfig().effective_permission_mode()
        'acceptEdits'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    permission_mode: str | None = None
    extra_args: list[str] | None = None
    extra_system_prompt: str | None = None

    def effective_permission_mode(self) -> str:
        """Permission mode, defaulting to ``acceptEdits``."""
        return self.permission_mode or DEFAULT_PERMISSION_MODE

    def effective_extra_args(self) -> list[str]:
        """Extra arguments, defaulting to none."""
        return list(self.extra_args or [])

    def append_system_prompt(self, prompt: str) -> str:
        """Append ``extra_system_prompt`` (if any) after a blank line."""
        if self.extra_system_prompt is None:
            return prompt
        return f"{prompt}\n\n{self.extra_system_prompt}"

    @classmethod
    def from_toml(cls, content: str, *, path: Path | None = None) -> MergetoolConfig:
        """Parse config from TOML content.

        Args:
            content: TOML document.
            path: Where the content came from, for error messages.

        Returns:
            Parsed config.

        Raises:
            ConfigError: If the TOML is malformed or doesn't match the schema.
        """
        where = f" {path}" if path else ""
        try:
            data: dict[str, Any] = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            msg = f"Failed to parse config file{where}: {e}"
            raise ConfigError(msg, config_path=path) from e

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid config file{where}: {e}"
            raise ConfigError(msg, config_path=path) from e


def load_config(path: Path | None = None) -> MergetoolConfig:
    """Load config from ``path``, or from the default location.

    An explicit path must exist. A missing file at the default location
    yields the defaults. A malformed file is always an error.

    Args:
        path: Explicit config file, or None for the default location.

    Returns:
        The loaded config.

    Raises:
        ConfigError: If the file can't be read or parsed.
    """
    explicit = path is not None
    if path is None:
        path = default_config_path()
        if path is None:
            logger.debug("No default config location on this platform")
            return MergetoolConfig()

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        if not explicit:
            logger.debug("No config file, using defaults", path=str(path))
            return MergetoolConfig()
        msg = f"Failed to read config file {path}: {e}"
        raise ConfigError(msg, config_path=path) from e
    except OSError as e:
        msg = f"Failed to read config file {path}: {e}"
        raise ConfigError(msg, config_path=path) from e

    logger.debug("Loaded config file", path=str(path))
    return MergetoolConfig.from_toml(content, path=path)


def default_config_template() -> str:
    """The commented default config file."""
    return DEFAULT_CONFIG_TEMPLATE_PATH.read_text(encoding="utf-8")


def write_default_config(path: Path | None = None, *, force: bool = False) -> Path:
    """Write the commented default config file.

    Args:
        path: Destination, or None for the default config location.
        force: Overwrite an existing file.

    Returns:
        The path written.

    Raises:
        ConfigError: If no location can be determined, the file exists and
            ``force`` is False, or writing fails.
    """
    if path is None:
        path = default_config_path()
        if path is None:
            msg = "Could not determine default config directory"
            raise ConfigError(msg)

    if path.exists() and not force:
        msg = f"Config file already exists at {path}\nUse --force to overwrite."
        raise ConfigError(msg, config_path=path)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(default_config_template(), encoding="utf-8")
    except OSError as e:
        msg = f"Failed to write config file {path}: {e}"
        raise ConfigError(msg, config_path=path) from e

    logger.debug("Wrote default config", path=str(path))
    return path
