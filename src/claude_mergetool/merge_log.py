"""Best-effort persistence of Claude's event stream.

Two sinks, each failing on its own:

- The event sink writes every raw line of one run to
  ``{log_dir}/{timestamp}_{label}.jsonl``. It holds an open file and
  disables itself for good on the first write error.
- The summary sink appends result lines to ``{log_dir}/summary.jsonl``,
  shared by all runs. It opens the file on every write, so a failure only
  loses that one line.

Neither sink ever raises: logging must not break a merge.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import TextIO

import structlog

from claude_mergetool.paths import SUMMARY_LOG_NAME, default_log_dir, event_log_name

logger = structlog.get_logger()


class SinkState(str, Enum):
    """Lifecycle of the event sink."""

    OPEN = "open"
    DISABLED = "disabled"


class EventSink:
    """Per-run raw event log.

    Example:
        >>> sink = EventSink(None)
        >>> sink.state
        <SinkState.DISABLED: 'disabled'>
        >>> sink.write("ignored")
    """

    def __init__(self, path: Path | None) -> None:
        """Open the event log.

        Args:
            path: File to create, or None to start disabled.
        """
        self.path = path
        self._file: TextIO | None = None
        if path is None:
            return
        try:
            self._file = path.open("w", encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to create event log", path=str(path), error=str(e))

    @property
    def state(self) -> SinkState:
        """Current sink state."""
        return SinkState.OPEN if self._file is not None else SinkState.DISABLED

    def write(self, line: str) -> None:
        """Append one line. A no-op once disabled."""
        if self._file is None:
            return
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError) as e:
            logger.warning(
                "Event log write failed, disabling", path=str(self.path), error=str(e)
            )
            self._disable()

    def close(self) -> None:
        """Flush and close the file. Safe to call more than once."""
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            logger.warning("Failed to close event log", path=str(self.path), error=str(e))
        self._file = None

    def _disable(self) -> None:
        file, self._file = self._file, None
        if file is None:
            return
        try:
            file.close()
        except OSError:
            logger.debug("Ignoring close error on disabled event log", path=str(self.path))


class SummarySink:
    """Cross-run summary log, reopened in append mode for every write."""

    def __init__(self, path: Path | None) -> None:
        """Initialize the summary sink.

        Args:
            path: Shared summary file, or None to drop all writes.
        """
        self.path = path

    def write(self, line: str) -> None:
        """Append one line, reporting (but not raising) any failure."""
        if self.path is None:
            return
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.warning("Summary log write failed", path=str(self.path), error=str(e))


class MergeLogger:
    """Records one merge run's event stream.

    Construction never fails: if the log directory can't be resolved or
    created, both sinks start disabled.

    Example:
        >>> with MergeLogger("src/lib.rs") as merge_log:  # doctest: +SKIP
        ...     merge_log.log_event(line)
        ...     merge_log.log_summary(line)
    """

    def __init__(self, filepath: str | None = None, *, log_dir: Path | None = None) -> None:
        """Resolve the log directory and open the sinks.

        Args:
            filepath: Path of the file being merged, used to label the event log.
            log_dir: Directory to log into. Defaults to the platform log directory.
        """
        directory = log_dir if log_dir is not None else default_log_dir()
        self.log_dir = self._prepare_dir(directory)

        if self.log_dir is None:
            self.events = EventSink(None)
            self.summary = SummarySink(None)
            return

        self.events = EventSink(self.log_dir / event_log_name(filepath))
        self.summary = SummarySink(self.log_dir / SUMMARY_LOG_NAME)
        logger.debug(
            "Logging merge events",
            event_log=str(self.events.path),
            summary_log=str(self.summary.path),
        )

    @staticmethod
    def _prepare_dir(directory: Path | None) -> Path | None:
        if directory is None:
            logger.warning("Could not determine log directory, logging disabled")
            return None
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(
                "Failed to create log directory", path=str(directory), error=str(e)
            )
            return None
        return directory

    @property
    def event_log_path(self) -> Path | None:
        """Path of this run's event log, if one was opened."""
        return self.events.path if self.events.state is SinkState.OPEN else None

    @property
    def summary_path(self) -> Path | None:
        """Path of the shared summary log, if logging is enabled."""
        return self.summary.path

    def log_event(self, line: str) -> None:
        """Record a raw line of the event stream."""
        self.events.write(line)

    def log_summary(self, line: str) -> None:
        """Record a raw result line in the cross-run summary."""
        self.summary.write(line)

    def close(self) -> None:
        """Close the event log."""
        self.events.close()

    def __enter__(self) -> MergeLogger:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
