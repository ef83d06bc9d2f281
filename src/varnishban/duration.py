"""Timeout parsing utilities."""

import re

from varnishban.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m)$")
_UNITS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
}


def parse_timeout(duration: Duration) -> float:
    """Parse a duration string to seconds. Numbers are taken as seconds."""
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, (int, float)):
        seconds = float(duration)
    else:
        match = _DURATION_PATTERN.match(duration.strip())
        if not match:
            raise ValueError(f"Invalid duration: {duration!r}")
        value, unit = match.groups()
        seconds = float(value) * _UNITS[unit]

    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {duration!r}")
    return seconds
