"""
Parsing of duration strings such as "300ms", "10s" or "1h15m30.5s".

Monitor periods and request timeouts are written in this compact form in the
monitor definitions file.
"""

import re
from datetime import timedelta

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """
    Parses a duration string into a timedelta.

    A duration is a sequence of decimal numbers, each with a unit suffix,
    e.g. "1.5s" or "2m30s". Valid units are "ns", "us" (or "µs"), "ms", "s",
    "m" and "h". The string "0" is accepted without a unit.

    Args:
        value: The duration string.

    Returns:
        timedelta: The parsed duration.

    Raises:
        ValueError: If the string is empty, negative or not a valid duration.
    """
    if not isinstance(value, str):
        raise ValueError(f"duration must be a string, got {type(value).__name__}")

    text = value.strip()
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("invalid duration: empty string")

    position = 0
    total_seconds = 0.0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total_seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    return timedelta(seconds=total_seconds)
