"""Duration parsing helpers for configuration values."""

from __future__ import annotations

import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)\s*$", re.IGNORECASE)
_UNIT_MILLIS = {
    "ms": 1,
    "s": 1_000,
    "m": 60_000,
    "h": 3_600_000,
}


def parse_duration(value: str | int | float) -> timedelta:
    """Parse compact duration strings like '500ms', '5s', '1m'.

    Bare numbers are taken as seconds.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value < 0:
            raise ValueError(f"Duration must be non-negative, got {value!r}")
        return timedelta(seconds=value)

    match = _DURATION_RE.match(str(value or ""))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}. Expected '<number><ms|s|m|h>'.")

    amount = float(match.group(1))
    unit = match.group(2).lower()
    return timedelta(milliseconds=amount * _UNIT_MILLIS[unit])


def duration_seconds(value: str | int | float) -> float:
    """Same as parse_duration but returns float seconds (for asyncio.sleep)."""
    return parse_duration(value).total_seconds()
