"""Tests for the subprocess command runner."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from claude_mergetool.exceptions import CommandError
from claude_mergetool.infra.command import CommandRunner, format_command


def test_format_command() -> None:
    """Arguments with spaces are quoted."""
    assert format_command(["claude", "--add-dir", "/tmp/a b"]) == "claude --add-dir '/tmp/a b'"


class TestRunCapture:
    """Tests for CommandRunner.run_capture."""

    def test_captures_output(self) -> None:
        """Test stdout and exit code are captured."""
        output = CommandRunner().run_capture([sys.executable, "-c", "print('hi')"])

        assert output.returncode == 0
        assert output.stdout.strip() == "hi"

    def test_missing_binary(self, tmp_path: Path) -> None:
        """Test a missing executable raises CommandError."""
        with pytest.raises(CommandError, match="Command not found"):
            CommandRunner().run_capture([str(tmp_path / "no-such-binary"), "--version"])

    def test_check_failure(self) -> None:
        """Test check=True raises on a non-zero exit code."""
        with pytest.raises(CommandError) as exc_info:
            CommandRunner().run_capture(
                [sys.executable, "-c", "raise SystemExit(3)"], check=True
            )

        assert exc_info.value.returncode == 3

    def test_no_check_returns_failure(self) -> None:
        """Test a failing command is returned when check=False."""
        output = CommandRunner().run_capture([sys.executable, "-c", "raise SystemExit(3)"])

        assert output.returncode == 3


class TestStream:
    """Tests for CommandRunner.stream."""

    def test_lines_without_terminators(self) -> None:
        """Test stdout is yielded line by line."""
        process = CommandRunner().stream(
            [sys.executable, "-c", "print('one'); print('two')"]
        )

        assert list(process.lines()) == ["one", "two"]
        assert process.wait() == 0

    def test_nonzero_exit(self) -> None:
        """Test wait raises when the child fails."""
        process = CommandRunner().stream([sys.executable, "-c", "raise SystemExit(2)"])

        assert list(process.lines()) == []
        with pytest.raises(CommandError) as exc_info:
            process.wait()

        assert exc_info.value.returncode == 2

    def test_kill(self) -> None:
        """Test a running child can be killed."""
        process = CommandRunner().stream(
            [sys.executable, "-c", "import time; time.sleep(30)"]
        )

        process.kill()

        assert process.process.returncode is not None

    def test_missing_binary(self, tmp_path: Path) -> None:
        """Test a missing executable raises CommandError."""
        with pytest.raises(CommandError, match="Failed to start process"):
            CommandRunner().stream([str(tmp_path / "no-such-binary")])
