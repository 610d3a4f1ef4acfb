"""Transcript writer: render events and redact temp-directory paths."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field

from claude_mergetool.events import Event, parse_event
from claude_mergetool.render import EventRenderer, RenderState

TMPDIR_PLACEHOLDER = "$TMPDIR"


@dataclass(frozen=True)
class TempDirs:
    """Temp-directory prefixes to redact, longest first.

    A longer prefix must be replaced before any shorter prefix it shares a
    start with, otherwise the shorter one would leave a remnant behind.

    Example:
        >>> TempDirs.of(["/tmp", "/tmp/sub"]).prefixes
        ('/tmp/sub', '/tmp')
    """

    prefixes: tuple[str, ...] = ()

    @classmethod
    def of(cls, prefixes: Iterable[str]) -> TempDirs:
        """Build a table from arbitrary prefixes, dropping empties and duplicates."""
        unique = {p for p in prefixes if p}
        return cls(prefixes=tuple(sorted(unique, key=lambda p: (-len(p), p))))

    @classmethod
    def from_environment(cls) -> TempDirs:
        """The OS temp directory and its canonical form (e.g. ``/private/var/...`` on macOS)."""
        raw = tempfile.gettempdir()
        return cls.of([raw, os.path.realpath(raw)])


def redact(text: str, prefixes: Iterable[str], placeholder: str = TMPDIR_PLACEHOLDER) -> str:
    """Replace every occurrence of each prefix, in order, with ``placeholder``.

    Args:
        text: Text to redact.
        prefixes: Literal prefixes, longest first.
        placeholder: Replacement token.

    Returns:
        The redacted text.
    """
    for prefix in prefixes:
        text = text.replace(prefix, placeholder)
    return text


@dataclass
class EventWriter:
    """Renders Claude events for one run with temp paths redacted.

    Owns the run's ``RenderState``, so one writer must be used per run.
    Markdown text is redacted before it is styled as well as after, since
    emphasis markers or line wrapping could otherwise split a path.

    Example:
        >>> writer = EventWriter(temp_dirs=TempDirs.of(["/tmp/abc"]))
        >>> line = (
        ...     '{"type": "assistant", "message": {"content": [{"type": "tool_use",'
        ...     ' "name": "Read", "input": {"file_path": "/tmp/abc/left.txt"}}]}}'
        ... )
        >>> "> Read $TMPDIR/left.txt" in writer.render_line(line)
        True
    """

    temp_dirs: TempDirs = field(default_factory=TempDirs.from_environment)
    renderer: EventRenderer | None = None
    placeholder: str = TMPDIR_PLACEHOLDER
    _state: RenderState = field(default_factory=RenderState, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.renderer is None:
            self.renderer = EventRenderer(text_filter=self.redact)

    @property
    def state(self) -> RenderState:
        """Render state of the current run."""
        return self._state

    def redact(self, text: str) -> str:
        """Replace this run's temp directories in ``text``."""
        return redact(text, self.temp_dirs.prefixes, self.placeholder)

    def render_event(self, event: Event) -> str:
        """Render a parsed event and redact temp paths from the result."""
        assert self.renderer is not None
        rendered = self.renderer.render(event, self._state)
        if not rendered:
            return rendered
        return self.redact(rendered)

    def render_line(self, line: str) -> str:
        """Parse and render a raw stream-json line.

        Raises:
            ProtocolError: If the line is a result event we cannot accept.
        """
        return self.render_event(parse_event(line))
