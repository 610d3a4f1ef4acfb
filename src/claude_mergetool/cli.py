"""CLI interface for claude-mergetool."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Annotated

import structlog
import typer

from claude_mergetool import __version__
from claude_mergetool.config import load_config, write_default_config
from claude_mergetool.exceptions import MergetoolError
from claude_mergetool.install import InstallProgram, install as install_programs
from claude_mergetool.merge import MergeDriver, MergeRequest

LOG_LEVEL_ENV = "CLAUDE_MERGETOOL_LOG"

logger = structlog.get_logger()

app = typer.Typer(
    name="claude-mergetool",
    help="AI-powered merge conflict resolution",
    no_args_is_help=True,
)


def configure_logging(level_name: str | None = None) -> None:
    """Send structlog output to stderr, filtered by ``$CLAUDE_MERGETOOL_LOG``."""
    level_name = (level_name or os.environ.get(LOG_LEVEL_ENV) or "info").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"claude-mergetool {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """claude-mergetool - resolve merge conflicts with Claude."""
    configure_logging()


@app.command()
def merge(
    base: Annotated[Path, typer.Argument(help="Base version (common ancestor)")],
    left: Annotated[Path, typer.Argument(help="Left version (ours / current branch)")],
    right: Annotated[Path, typer.Argument(help="Right version (theirs / incoming)")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file path (jj mode)"),
    ] = None,
    git_merge_driver: Annotated[
        bool,
        typer.Option(
            "--git-merge-driver",
            help="Git merge driver mode (writes result to the LEFT path)",
        ),
    ] = False,
    ancestor_label: Annotated[
        str | None, typer.Option("-s", help="Ancestor conflict label")
    ] = None,
    left_label: Annotated[str, typer.Option("-x", help="Left/ours conflict label")] = "ours",
    right_label: Annotated[
        str, typer.Option("-y", help="Right/theirs conflict label")
    ] = "theirs",
    filepath: Annotated[str | None, typer.Option("-p", help="Original file path")] = None,
    marker_size: Annotated[int | None, typer.Option("-l", help="Conflict marker size")] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.toml"),
    ] = None,
) -> None:
    """Resolve a merge conflict using Claude."""
    request = MergeRequest(
        base=base,
        left=left,
        right=right,
        output=output,
        git_merge_driver=git_merge_driver,
        ancestor_label=ancestor_label,
        left_label=left_label,
        right_label=right_label,
        filepath=filepath,
        marker_size=marker_size,
    )
    logger.debug("Parsed merge arguments", request=request)

    try:
        driver = MergeDriver(config=load_config(config))
        driver.run(request)
    except MergetoolError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def install(
    programs: Annotated[
        list[InstallProgram] | None,
        typer.Argument(
            help="Programs to configure. Defaults to git and jj (if available).",
            show_default=False,
        ),
    ] = None,
) -> None:
    """Install claude-mergetool as a merge tool for git or jj."""
    try:
        install_programs(list(programs or []))
    except MergetoolError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e


@app.command("generate-config")
def generate_config(
    output: Annotated[
        Path | None,
        typer.Option("--output", help="Write here instead of the default config location"),
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite an existing config file")
    ] = False,
) -> None:
    """Write a commented default config file."""
    try:
        path = write_default_config(output, force=force)
    except MergetoolError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(f"Wrote default config to {path}", err=True)


if __name__ == "__main__":
    app()
