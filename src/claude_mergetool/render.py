"""Render parsed Claude events as a styled terminal transcript."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from io import StringIO

import structlog
import typer
from rich.console import Console
from rich.markdown import Markdown

from claude_mergetool.events import (
    AssistantEvent,
    ContentBlock,
    Event,
    ModelUsage,
    ResultEvent,
    SuccessResult,
    TextBlock,
    ToolUseBlock,
    UnknownEvent,
)
from claude_mergetool.units import (
    annual_salary,
    format_dollars,
    format_duration,
    format_tokens,
)

logger = structlog.get_logger()

# Tools whose file path is worth showing in the transcript
FILE_TOOLS = frozenset({"Read", "Write", "Edit"})

MISSING_PATH = "?"

CODE_THEME = "monokai"


@dataclass
class RenderState:
    """Render state shared by every event of one run.

    Attributes:
        has_output: Whether anything visible has been rendered yet. Until
            it has, leading newlines of text blocks are dropped.
    """

    has_output: bool = False


def style_markdown(text: str, *, width: int | None = None) -> str:
    """Render markdown to ANSI-styled text with rich.

    Leading newlines are kept as they are, since markdown would swallow
    them. Trailing blanks are trimmed from every line and the result
    always ends with exactly one newline.

    Args:
        text: Markdown text.
        width: Wrap width. Defaults to the terminal width.

    Returns:
        Terminal-ready text.
    """
    body = text.lstrip("\n")
    leading = text[: len(text) - len(body)]

    buffer = StringIO()
    console = Console(
        file=buffer,
        force_terminal=True,
        color_system="standard",
        width=width,
        highlight=False,
    )
    console.print(Markdown(body, code_theme=CODE_THEME, justify="default", hyperlinks=False))

    lines = [line.rstrip() for line in buffer.getvalue().split("\n")]
    while lines and not lines[-1]:
        lines.pop()
    return leading + "\n".join(lines) + "\n"


def format_model_usage(usage: ModelUsage) -> str:
    """One-line token and cost breakdown for a model."""
    return (
        f"{format_tokens(usage.input_tokens)} input, "
        f"{format_tokens(usage.output_tokens)} output, "
        f"{format_tokens(usage.cache_read_input_tokens)} cache read, "
        f"{format_tokens(usage.cache_creation_input_tokens)} cache write "
        f"({format_dollars(usage.cost_usd)})"
    )


def format_result(result: SuccessResult) -> str:
    """Render the end-of-run summary.

    The first line is bold green and reports timing, cost and the cost
    projected onto a working year. One dimmed line per model follows,
    ordered by model name.
    """
    summary = (
        f"Finished in {format_duration(result.duration)} "
        f"({format_duration(result.api_duration)} API time). "
        f"Total cost: {format_dollars(result.total_cost)}"
    )
    salary = annual_salary(result.total_cost, result.duration)
    if salary is not None:
        summary += f" (Salary: {format_dollars(salary)}/yr)"

    lines = [typer.style(summary, fg=typer.colors.GREEN, bold=True)]
    if result.model_usage:
        lines.append(typer.style("Usage by model:", dim=True))
        for name in sorted(result.model_usage):
            usage = format_model_usage(result.model_usage[name])
            lines.append(typer.style(f"    {name}: {usage}", dim=True))
    return "\n".join(lines) + "\n"


class EventRenderer:
    """Turns one event into a fragment of transcript text.

    The renderer itself is stateless; the cross-event ``RenderState`` is
    passed in by the caller and updated in place.

    Example:
        >>> state = RenderState()
        >>> renderer = EventRenderer()
        >>> event = AssistantEvent.model_validate(
        ...     {"message": {"content": [{"type": "text", "text": "\\n\\nHi"}]}}
        ... )
        >>> "Hi" in renderer.render(event, state)
        True
        >>> state.has_output
        True
    """

    def __init__(
        self,
        *,
        text_filter: Callable[[str], str] | None = None,
        width: int | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            text_filter: Applied to markdown source before it is styled, so
                that markup can't split what the filter is looking for.
            width: Markdown wrap width. Defaults to the terminal width.
        """
        self.text_filter = text_filter
        self.width = width

    def render(self, event: Event, state: RenderState) -> str:
        """Render an event, updating ``state``.

        Args:
            event: Any parsed event, including unknown or unparseable ones.
            state: Render state for the current run.

        Returns:
            Styled text, possibly empty.
        """
        if isinstance(event, AssistantEvent):
            return "".join(
                self.render_block(block, state) for block in event.message.content
            )
        if isinstance(event, ResultEvent):
            state.has_output = True
            return format_result(event.result)
        if isinstance(event, UnknownEvent):
            logger.debug("Ignoring event", event_type=event.type)
            return ""

        logger.debug("Skipping unparseable event", reason=event.reason, line=event.line)
        return ""

    def render_block(self, block: ContentBlock, state: RenderState) -> str:
        """Render a single content block of an assistant event."""
        if isinstance(block, TextBlock):
            text = block.text if state.has_output else block.text.lstrip("\n")
            if not text:
                return ""
            state.has_output = True
            if self.text_filter is not None:
                text = self.text_filter(text)
            return style_markdown(text, width=self.width)

        if isinstance(block, ToolUseBlock):
            state.has_output = True
            if block.name in FILE_TOOLS:
                path = block.input.file_path or MISSING_PATH
                line = f"> {block.name} {path}"
            else:
                line = f"> {block.name}"
            return typer.style(line, dim=True) + "\n"

        return ""
