"""Unit tests for configuration loading and the default template."""

from __future__ import annotations

from pathlib import Path

import pytest

from claude_mergetool.config import (
    MergetoolConfig,
    default_config_template,
    load_config,
    write_default_config,
)
from claude_mergetool.exceptions import ConfigError


def test_parse_empty() -> None:
    """An empty document yields the defaults."""
    assert MergetoolConfig.from_toml("") == MergetoolConfig()


def test_parse_full() -> None:
    """All keys are read."""
    config = MergetoolConfig.from_toml(
        'permission_mode = "plan"\n'
        'extra_args = ["--model", "opus"]\n'
        'extra_system_prompt = "Be concise."\n'
    )

    assert config == MergetoolConfig(
        permission_mode="plan",
        extra_args=["--model", "opus"],
        extra_system_prompt="Be concise.",
    )


def test_parse_partial() -> None:
    """Missing keys stay unset."""
    config = MergetoolConfig.from_toml('permission_mode = "plan"')

    assert config.permission_mode == "plan"
    assert config.extra_args is None
    assert config.extra_system_prompt is None


def test_unknown_field_rejected() -> None:
    """Typos in key names are errors, not silently ignored."""
    with pytest.raises(ConfigError, match="Invalid config file"):
        MergetoolConfig.from_toml('permision_mode = "plan"')


def test_wrong_type_rejected() -> None:
    """Values must have the right type."""
    with pytest.raises(ConfigError):
        MergetoolConfig.from_toml('extra_args = "--model opus"')


def test_effective_values() -> None:
    """Unset values fall back to their defaults."""
    default = MergetoolConfig()
    custom = MergetoolConfig(permission_mode="plan", extra_args=["--model", "opus"])

    assert default.effective_permission_mode() == "acceptEdits"
    assert default.effective_extra_args() == []
    assert custom.effective_permission_mode() == "plan"
    assert custom.effective_extra_args() == ["--model", "opus"]


def test_append_system_prompt() -> None:
    """Extra prompt text follows a blank line."""
    assert MergetoolConfig().append_system_prompt("base prompt") == "base prompt"
    config = MergetoolConfig(extra_system_prompt="Be concise.")
    assert config.append_system_prompt("base prompt") == "base prompt\n\nBe concise."


def test_load_missing_explicit_path_errors(tmp_path: Path) -> None:
    """An explicit config path must exist."""
    with pytest.raises(ConfigError) as exc_info:
        load_config(tmp_path / "config.toml")

    assert exc_info.value.config_path == tmp_path / "config.toml"


def test_load_missing_default_path_uses_defaults(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """A missing file at the default location is not an error."""
    monkeypatch.setattr(
        "claude_mergetool.config.default_config_path", lambda: tmp_path / "config.toml"
    )

    assert load_config() == MergetoolConfig()


def test_load_valid_explicit_path(tmp_path: Path) -> None:
    """A valid file is loaded."""
    path = tmp_path / "config.toml"
    path.write_text('permission_mode = "plan"')

    assert load_config(path).permission_mode == "plan"


def test_load_malformed_explicit_path_errors(tmp_path: Path) -> None:
    """Malformed TOML is reported with the file path."""
    path = tmp_path / "config.toml"
    path.write_text("not valid toml [[[")

    with pytest.raises(ConfigError, match="Failed to parse config file"):
        load_config(path)


def test_template_parses_to_defaults() -> None:
    """The commented template is valid and changes nothing."""
    assert MergetoolConfig.from_toml(default_config_template()) == MergetoolConfig()


def test_generate_config_writes_template(tmp_path: Path) -> None:
    """The template is written verbatim, creating parent directories."""
    path = tmp_path / "nested" / "config.toml"

    assert write_default_config(path) == path
    assert path.read_text() == default_config_template()


def test_generate_config_errors_if_exists(tmp_path: Path) -> None:
    """An existing file is kept unless forced."""
    path = tmp_path / "config.toml"
    path.write_text("existing")

    with pytest.raises(ConfigError, match="Use --force to overwrite"):
        write_default_config(path)

    assert path.read_text() == "existing"


def test_generate_config_force_overwrites(tmp_path: Path) -> None:
    """Force replaces an existing file."""
    path = tmp_path / "config.toml"
    path.write_text("existing")

    write_default_config(path, force=True)

    assert path.read_text() == default_config_template()
