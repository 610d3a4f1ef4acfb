"""Typed model of Claude's ``--output-format stream-json`` events.

Each line Claude prints is one JSON object tagged by ``type``. Only the
variants we render are modeled in detail:

- ``assistant`` events carry content blocks (text, tool use, or anything
  newer which is kept as an ``UnknownBlock``).
- ``result`` events terminate the run. Their ``subtype`` family is closed:
  only ``success`` is accepted, anything else is a protocol error.
- Every other ``type`` becomes an ``UnknownEvent``, and lines which are not
  a tagged JSON object become ``UnparseableEvent``.
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import Annotated, Any, Literal, Union

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    NonNegativeInt,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from claude_mergetool.exceptions import ProtocolError, ResultSubtypeError

logger = structlog.get_logger()


class _EventModel(BaseModel):
    """Base for stream models: immutable, ignores fields we don't use."""

    model_config = ConfigDict(extra="ignore", frozen=True)


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


class TextBlock(_EventModel):
    """Prose or markdown produced by the assistant."""

    type: Literal["text"] = "text"
    text: str


class ToolInput(_EventModel):
    """The subset of a tool's input we display."""

    file_path: str | None = None


class ToolUseBlock(_EventModel):
    """A tool invocation."""

    type: Literal["tool_use"] = "tool_use"
    name: str
    input: ToolInput = Field(default_factory=ToolInput)


class UnknownBlock(_EventModel):
    """Any content block we don't know how to render (e.g. ``thinking``)."""

    type: str | None = None


_KNOWN_BLOCK_TAGS = frozenset({"text", "tool_use"})


def _block_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    return tag if tag in _KNOWN_BLOCK_TAGS else "unknown"


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ToolUseBlock, Tag("tool_use")],
        Annotated[UnknownBlock, Tag("unknown")],
    ],
    Discriminator(_block_tag),
]


class AssistantMessage(_EventModel):
    """The message body of an assistant event."""

    content: list[ContentBlock] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Result payload
# ---------------------------------------------------------------------------


class Usage(_EventModel):
    """Aggregate token usage for the run."""

    input_tokens: NonNegativeInt
    cache_creation_input_tokens: NonNegativeInt
    cache_read_input_tokens: NonNegativeInt
    output_tokens: NonNegativeInt


class ModelUsage(_EventModel):
    """Per-model usage. Claude reports these keys in camelCase."""

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    input_tokens: NonNegativeInt
    output_tokens: NonNegativeInt
    cache_read_input_tokens: NonNegativeInt
    cache_creation_input_tokens: NonNegativeInt
    web_search_requests: NonNegativeInt = 0
    cost_usd: float = Field(alias="costUSD")
    context_window: NonNegativeInt = 0
    max_output_tokens: NonNegativeInt = 0


def _millis(value: Any) -> Any:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        msg = f"expected a non-negative integer number of milliseconds, got {value!r}"
        raise ValueError(msg)
    try:
        return timedelta(milliseconds=value)
    except OverflowError as e:
        msg = f"{value} milliseconds is out of range"
        raise ValueError(msg) from e


class SuccessResult(_EventModel):
    """Payload of a ``result`` event with ``subtype == "success"``.

    Attributes:
        is_error: Whether Claude flagged the final answer as an error.
        duration: Wall-clock duration of the run.
        api_duration: Time spent waiting on the API.
        num_turns: Number of agentic turns.
        result: Claude's final summary text.
        total_cost: Total cost in US dollars.
        usage: Aggregate token usage.
        model_usage: Usage broken down by model name.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    subtype: Literal["success"] = "success"
    is_error: bool
    duration: timedelta = Field(alias="duration_ms")
    api_duration: timedelta = Field(alias="duration_api_ms")
    num_turns: NonNegativeInt
    result: str
    total_cost: float = Field(alias="total_cost_usd")
    usage: Usage
    model_usage: dict[str, ModelUsage] = Field(alias="modelUsage")

    @field_validator("duration", "api_duration", mode="before")
    @classmethod
    def parse_millis(cls, v: Any) -> Any:
        """Durations arrive as integer milliseconds."""
        return _millis(v)


RESULT_SUBTYPES = frozenset({"success"})


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class AssistantEvent(_EventModel):
    """One assistant turn."""

    type: Literal["assistant"] = "assistant"
    message: AssistantMessage


class ResultEvent(_EventModel):
    """The terminal event of a run."""

    type: Literal["result"] = "result"
    result: SuccessResult


class UnknownEvent(_EventModel):
    """A well-formed event whose ``type`` we don't model (``system``, ``user``, ...)."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: str


class UnparseableEvent(_EventModel):
    """A line that isn't a tagged JSON object or doesn't fit its variant."""

    line: str
    reason: str


Event = Union[AssistantEvent, ResultEvent, UnknownEvent, UnparseableEvent]


def _event_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    return "assistant" if tag == "assistant" else "unknown"


_StreamEvent = Annotated[
    Union[
        Annotated[AssistantEvent, Tag("assistant")],
        Annotated[UnknownEvent, Tag("unknown")],
    ],
    Discriminator(_event_tag),
]

_STREAM_EVENT_ADAPTER: TypeAdapter[AssistantEvent | UnknownEvent] = TypeAdapter(
    _StreamEvent
)


def _parse_result(data: dict[str, Any], line: str) -> ResultEvent:
    subtype = data.get("subtype")
    if not isinstance(subtype, str) or subtype not in RESULT_SUBTYPES:
        msg = f"Unsupported result subtype: {subtype!r}"
        raise ResultSubtypeError(msg, subtype=str(subtype), line=line)
    try:
        return ResultEvent(result=SuccessResult.model_validate(data))
    except ValidationError as e:
        msg = f"Malformed {subtype} result: {e.error_count()} validation error(s)"
        raise ProtocolError(msg, line=line) from e


def parse_event(line: str) -> Event:
    """Parse one line of Claude's stream-json output.

    Args:
        line: A single line, without its trailing newline.

    Returns:
        The parsed event. Lines which cannot be interpreted are returned as
        ``UnparseableEvent`` rather than raising.

    Raises:
        ResultSubtypeError: If a result event has a subtype other than
            ``success``.
        ProtocolError: If a success result does not match its schema.
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        return UnparseableEvent(line=line, reason=f"invalid JSON: {e.msg}")

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        return UnparseableEvent(line=line, reason="not a tagged JSON object")

    if data["type"] == "result":
        return _parse_result(data, line)

    try:
        return _STREAM_EVENT_ADAPTER.validate_python(data)
    except ValidationError as e:
        logger.debug(
            "Event failed validation",
            event_type=data["type"],
            errors=e.error_count(),
        )
        return UnparseableEvent(
            line=line, reason=f"invalid {data['type']} event: {e.error_count()} error(s)"
        )

