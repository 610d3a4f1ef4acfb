"""Register claude-mergetool as a merge tool for git and jj."""

from __future__ import annotations

from enum import Enum

import structlog

from claude_mergetool.exceptions import CommandError, InstallError
from claude_mergetool.infra.command import CommandRunner, format_command

logger = structlog.get_logger()

GIT_MERGETOOL_CMD = 'claude-mergetool merge "$BASE" "$LOCAL" "$REMOTE" -o "$MERGED"'
JJ_MERGE_ARGS = '["merge", "$base", "$left", "$right", "-o", "$output", "-p", "$path"]'


class InstallProgram(str, Enum):
    """Version control systems we can register with."""

    GIT = "git"
    JJ = "jj"

    @property
    def program(self) -> str:
        """Executable name."""
        return self.value

    def is_available(self, runner: CommandRunner) -> bool:
        """Whether ``<program> --version`` runs successfully."""
        try:
            output = runner.run_capture([self.program, "--version"])
        except CommandError:
            return False
        return output.returncode == 0

    def config_set_command(self, name: str, value: str) -> list[str]:
        """Command that sets a user-level config value."""
        scope = "--global" if self is InstallProgram.GIT else "--user"
        return [self.program, "config", "set", scope, name, value]

    def settings(self) -> list[tuple[str, str]]:
        """Config values that register the merge tool."""
        if self is InstallProgram.GIT:
            return [
                ("mergetool.claude.cmd", GIT_MERGETOOL_CMD),
                ("mergetool.claude.trustExitCode", "true"),
            ]
        return [
            ("merge-tools.claude.program", "claude-mergetool"),
            ("merge-tools.claude.merge-args", JJ_MERGE_ARGS),
        ]

    def install(self, runner: CommandRunner) -> None:
        """Write the merge tool configuration.

        Raises:
            InstallError: If any config command fails.
        """
        for name, value in self.settings():
            command = self.config_set_command(name, value)
            logger.info("$ " + format_command(command))
            try:
                output = runner.run_capture(command, check=True)
            except CommandError as e:
                msg = f"Failed to configure `claude-mergetool` for `{self.program}`: {e}"
                raise InstallError(msg, program=self.program) from e
            if output.stdout.strip():
                logger.info(output.stdout.strip())


def default_programs(runner: CommandRunner) -> list[InstallProgram]:
    """Every supported program that is installed."""
    return [program for program in InstallProgram if program.is_available(runner)]


def install(programs: list[InstallProgram], runner: CommandRunner | None = None) -> list[InstallProgram]:
    """Register the merge tool with each program.

    Args:
        programs: Programs to configure; empty means every available one.
        runner: CommandRunner for git/jj invocations.

    Returns:
        The programs that were configured.

    Raises:
        InstallError: If nothing is available or a program can't be configured.
    """
    runner = runner or CommandRunner()
    if not programs:
        programs = default_programs(runner)
        if not programs:
            msg = "Neither `git` nor `jj` is available"
            raise InstallError(msg)

    logger.debug("Determined programs to configure", programs=[p.value for p in programs])

    for program in programs:
        logger.info(f"Configuring `claude-mergetool` for {program.program}")
        program.install(runner)

    return programs
