"""Human-readable formatting for durations, dollar amounts and token counts."""

from __future__ import annotations

from datetime import timedelta

WORKING_HOURS_PER_WEEK = 40.0
WORKING_WEEKS_PER_YEAR = 50.0  # two weeks of vacation

_ONE_SECOND = timedelta(seconds=1)
_ONE_MINUTE = timedelta(minutes=1)
_ONE_HOUR = timedelta(hours=1)

# (suffix, milliseconds per unit), largest first
_UNITS: tuple[tuple[str, int], ...] = (
    ("d", 86_400_000),
    ("h", 3_600_000),
    ("m", 60_000),
    ("s", 1_000),
    ("ms", 1),
)


def format_duration(duration: timedelta) -> str:
    """Format an elapsed time.

    Sub-second durations are shown in whole milliseconds, sub-minute
    durations in seconds with two decimals, and anything longer as a
    breakdown of its non-zero units.

    Example:
        >>> format_duration(timedelta(milliseconds=100))
        '100ms'
        >>> format_duration(timedelta(milliseconds=1500))
        '1.50s'
        >>> format_duration(timedelta(minutes=2, seconds=5, milliseconds=300))
        '2m 5s 300ms'
    """
    if duration < _ONE_SECOND:
        return f"{duration // timedelta(milliseconds=1)}ms"
    if duration < _ONE_MINUTE:
        return f"{duration.total_seconds():.2f}s"

    remaining = duration // timedelta(milliseconds=1)
    parts = []
    for suffix, size in _UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{suffix}")
    return " ".join(parts)


def format_dollars(amount: float) -> str:
    """Format a US dollar amount.

    Example:
        >>> format_dollars(0.01)
        '$0.0100'
        >>> format_dollars(28654.08)
        '$28.7k'
    """
    if amount < 1_000:
        return f"${amount:.4f}"
    return f"${amount / 1_000:.1f}k"


def format_tokens(tokens: int) -> str:
    """Format a token count with a k/m suffix.

    Example:
        >>> format_tokens(999)
        '999'
        >>> format_tokens(1_500)
        '1.5k'
        >>> format_tokens(2_000_000)
        '2.000m'
    """
    if tokens < 1_000:
        return str(tokens)
    if tokens < 1_000_000:
        return f"{tokens / 1_000:.1f}k"
    return f"{tokens / 1_000_000:.3f}m"


def annual_salary(cost: float, duration: timedelta) -> float | None:
    """Project a run's cost onto a full working year.

    The hourly rate ``cost / hours`` is multiplied by a 40 hour week and a
    50 week year.

    Args:
        cost: Total cost of the run in dollars.
        duration: Wall-clock duration of the run.

    Returns:
        The yearly figure, or None when the duration is not positive and
        no rate can be derived.
    """
    hours = duration / _ONE_HOUR
    if hours <= 0:
        return None
    return (cost / hours) * WORKING_HOURS_PER_WEEK * WORKING_WEEKS_PER_YEAR
