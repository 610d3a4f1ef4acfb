"""Pytest fixtures for claude-mergetool tests."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import pytest
import structlog
from rich.text import Text

from claude_mergetool.writer import EventWriter, TempDirs


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration a test (e.g. the CLI callback) installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def result_payload() -> dict[str, Any]:
    """A successful result event, as Claude prints it."""
    return {
        "type": "result",
        "subtype": "success",
        "is_error": False,
        "duration_ms": 100,
        "duration_api_ms": 90,
        "num_turns": 1,
        "result": "ok",
        "session_id": "4a2b1e2c",
        "total_cost_usd": 0.01,
        "usage": {
            "input_tokens": 1,
            "cache_creation_input_tokens": 0,
            "cache_read_input_tokens": 0,
            "output_tokens": 1,
        },
        "modelUsage": {},
    }


@pytest.fixture
def result_line(result_payload: dict[str, Any]) -> str:
    """The successful result event as a raw line."""
    return json.dumps(result_payload)


@pytest.fixture
def assistant_line() -> Callable[..., str]:
    """Build a raw assistant event line from content blocks."""

    def _build(*blocks: dict[str, Any]) -> str:
        return json.dumps(
            {
                "type": "assistant",
                "message": {"role": "assistant", "content": list(blocks)},
                "session_id": "4a2b1e2c",
            }
        )

    return _build


@pytest.fixture
def writer() -> EventWriter:
    """An EventWriter redacting a fixed temp directory."""
    return EventWriter(temp_dirs=TempDirs.of(["/tmp/abc"]))


@pytest.fixture
def plain() -> Callable[[str], str]:
    """Strip ANSI styling from transcript text, keeping every newline."""

    def _plain(text: str) -> str:
        return "\n".join(Text.from_ansi(line).plain for line in text.split("\n"))

    return _plain
