"""Subprocess command runner with logging."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import structlog

from claude_mergetool.exceptions import CommandError

logger = structlog.get_logger()


def format_command(command: list[str]) -> str:
    """Render a command as a copy-pasteable shell line."""
    return shlex.join(command)


@dataclass
class CommandOutput:
    """Captured result of a finished command.

    Attributes:
        returncode: Exit code of the process.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        command: The command that was run.
    """

    returncode: int
    stdout: str
    stderr: str
    command: list[str]


class StreamingProcess:
    """A running child whose stdout is read line by line.

    Example:
        >>> proc = CommandRunner().stream(["echo", "hello"])  # doctest: +SKIP
        >>> list(proc.lines())  # doctest: +SKIP
        ['hello']
        >>> proc.wait()  # doctest: +SKIP
    """

    def __init__(self, process: subprocess.Popen[str], command: list[str]) -> None:
        self.process = process
        self.command = command

    def lines(self) -> Iterator[str]:
        """Yield stdout lines without their line terminators until the pipe closes."""
        assert self.process.stdout is not None
        for line in self.process.stdout:
            yield line.rstrip("\r\n")

    def wait(self) -> int:
        """Wait for the child to exit.

        Returns:
            The exit code (always 0).

        Raises:
            CommandError: If the child exited unsuccessfully.
        """
        returncode = self.process.wait()
        logger.debug("Command completed", command=self.command[0], returncode=returncode)
        if returncode != 0:
            msg = f"Command failed with exit code {returncode}: {self.command[0]}"
            raise CommandError(msg, command=self.command, returncode=returncode)
        return returncode

    def kill(self) -> None:
        """Terminate the child if it's still running."""
        if self.process.poll() is None:
            self.process.kill()
            self.process.wait()


class CommandRunner:
    """Runs subprocess commands with consistent logging.

    All subprocess calls in claude-mergetool go through this class so that
    failures surface as ``CommandError``.
    """

    def run_capture(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        check: bool = False,
    ) -> CommandOutput:
        """Run a command and capture stdout/stderr in memory.

        Args:
            command: Command and arguments to run.
            cwd: Working directory for the command.
            check: If True, raise on non-zero exit code.

        Returns:
            CommandOutput with exit code and decoded output.

        Raises:
            CommandError: If the command cannot be started, or if check=True
                and it fails.
        """
        log = logger.bind(command=format_command(command))
        log.debug("Running command (capture mode)")

        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            log.debug("Command could not be started", error=str(e))
            msg = f"Command not found: {command[0]}"
            raise CommandError(msg, command=command, cwd=cwd) from e

        log.debug("Command completed", returncode=result.returncode)

        if check and result.returncode != 0:
            msg = f"Command failed with exit code {result.returncode}: {format_command(command)}"
            raise CommandError(
                msg,
                command=command,
                returncode=result.returncode,
                cwd=cwd,
            )

        return CommandOutput(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            command=command,
        )

    def stream(self, command: list[str], *, cwd: Path | None = None) -> StreamingProcess:
        """Start a command with stdin closed and stdout piped as UTF-8 text.

        The child's stderr is inherited, so its diagnostics reach the
        terminal directly.

        Args:
            command: Command and arguments to run.
            cwd: Working directory for the command.

        Returns:
            A StreamingProcess to read from and wait on.

        Raises:
            CommandError: If the command cannot be started.
        """
        logger.debug("Starting process", command=format_command(command))
        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            msg = f"Failed to start process: {command[0]}"
            raise CommandError(msg, command=command, cwd=cwd) from e

        logger.debug("Process started", pid=process.pid)
        return StreamingProcess(process, command)
