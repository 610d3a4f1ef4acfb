"""Resolve a merge conflict by driving a ``claude`` session."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import structlog
import typer

from claude_mergetool.config import MergetoolConfig
from claude_mergetool.events import ResultEvent, parse_event
from claude_mergetool.exceptions import UsageError
from claude_mergetool.infra.command import CommandRunner, format_command
from claude_mergetool.merge_log import MergeLogger
from claude_mergetool.prompts.renderer import MergePromptRenderer, MergePrompts
from claude_mergetool.writer import EventWriter

logger = structlog.get_logger()

CLAUDE_BINARY = "claude"
UNKNOWN_FILEPATH = "unknown file"


@dataclass
class MergeRequest:
    """One three-way merge, as handed to us by git or jj.

    Attributes:
        base: Base version (common ancestor).
        left: Left version (ours / current branch).
        right: Right version (theirs / incoming).
        output: Where to write the result (jj mode).
        git_merge_driver: Git merge driver mode, which writes the result to ``left``.
        ancestor_label: Ancestor conflict label.
        left_label: Left conflict label.
        right_label: Right conflict label.
        filepath: Path of the conflicted file in the repository.
        marker_size: Conflict marker size.
    """

    base: Path
    left: Path
    right: Path
    output: Path | None = None
    git_merge_driver: bool = False
    ancestor_label: str | None = None
    left_label: str = "ours"
    right_label: str = "theirs"
    filepath: str | None = None
    marker_size: int | None = None

    def output_path(self) -> Path:
        """Resolve where the merged file goes.

        Raises:
            UsageError: If neither ``-o`` nor git merge driver mode was given.
        """
        if self.output is not None:
            return self.output
        if self.git_merge_driver:
            return self.left
        msg = "either --git-merge-driver or -o <path> is required"
        raise UsageError(msg)

    def display_filepath(self) -> str:
        """The repository path of the file, for prompts."""
        return self.filepath or UNKNOWN_FILEPATH

    def granted_dirs(self) -> list[str]:
        """Unique parent directories of every file Claude must touch."""
        paths = [self.base, self.left, self.right, self.output_path()]
        return sorted({os.path.dirname(p) for p in map(str, paths)} - {""})


def build_prompts(
    request: MergeRequest,
    config: MergetoolConfig,
    prompts: MergePromptRenderer | None = None,
) -> MergePrompts:
    """Render the system and user prompts for a merge."""
    return (prompts or MergePromptRenderer()).render(request, config)


def build_command(
    request: MergeRequest,
    config: MergetoolConfig | None = None,
    *,
    binary: str = CLAUDE_BINARY,
    prompts: MergePromptRenderer | None = None,
) -> list[str]:
    """Build the ``claude`` command line for a merge.

    Claude runs non-interactively, streams JSON events, and gets access to
    the directories holding the temporary base/left/right/output files.
    ``--add-dir`` takes a variable number of values, so it goes last.

    Raises:
        UsageError: If the request has no output path.
    """
    config = config or MergetoolConfig()
    rendered = build_prompts(request, config, prompts)

    cmd = [
        binary,
        "--print",
        "--verbose",
        "--output-format=stream-json",
        f"--permission-mode={config.effective_permission_mode()}",
    ]
    cmd.extend(config.effective_extra_args())
    cmd.extend(["--append-system-prompt", rendered.system, rendered.user])

    for directory in request.granted_dirs():
        logger.debug("Granting access", directory=directory)
        cmd.extend(["--add-dir", directory])

    return cmd


def _echo_stderr(text: str) -> None:
    typer.echo(text, err=True, nl=False)


class MergeDriver:
    """Runs ``claude`` and turns its event stream into a transcript.

    Every line Claude prints is, in order: written to the event log,
    parsed, appended to the summary log if it is the final result, and
    rendered to stderr.

    Example:
        >>> driver = MergeDriver(config=load_config())  # doctest: +SKIP
        >>> driver.run(MergeRequest(base=..., left=..., right=..., output=...))  # doctest: +SKIP
    """

    def __init__(
        self,
        *,
        config: MergetoolConfig | None = None,
        runner: CommandRunner | None = None,
        binary: str = CLAUDE_BINARY,
        writer_factory: Callable[[], EventWriter] = EventWriter,
        logger_factory: Callable[[str | None], MergeLogger] = MergeLogger,
        echo: Callable[[str], None] = _echo_stderr,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Loaded configuration (defaults if None).
            runner: CommandRunner used to spawn Claude.
            binary: Claude executable.
            writer_factory: Builds the transcript writer for a run.
            logger_factory: Builds the event logger for a run, given the file path.
            echo: Writes transcript text to the terminal.
        """
        self.config = config or MergetoolConfig()
        self.runner = runner or CommandRunner()
        self.binary = binary
        self.writer_factory = writer_factory
        self.logger_factory = logger_factory
        self.echo = echo

    def run(self, request: MergeRequest) -> None:
        """Resolve one merge conflict.

        Raises:
            UsageError: If the request has no output path.
            CommandError: If Claude can't be started or exits unsuccessfully.
            ProtocolError: If Claude reports a result we can't interpret.
        """
        command = build_command(request, self.config, binary=self.binary)
        log = logger.bind(filepath=request.filepath)
        log.debug("Claude command", command=format_command(command))

        if request.filepath:
            self.echo(
                typer.style(
                    f"Resolving merge conflict in {typer.style(request.filepath, underline=True)}",
                    fg=typer.colors.GREEN,
                    bold=True,
                )
                + "\n"
            )

        writer = self.writer_factory()
        with self.logger_factory(request.filepath) as merge_log:
            process = self.runner.stream(command)
            try:
                for line in process.lines():
                    self.handle_line(line, writer, merge_log)
            except BaseException:
                process.kill()
                raise
            process.wait()

        log.debug("Merge session finished", has_output=writer.state.has_output)

    def handle_line(self, line: str, writer: EventWriter, merge_log: MergeLogger) -> None:
        """Log, render and echo one line of Claude's output."""
        merge_log.log_event(line)
        event = parse_event(line)
        if isinstance(event, ResultEvent):
            merge_log.log_summary(line)
        rendered = writer.render_event(event)
        if rendered:
            self.echo(rendered)
