"""Utility functions for the moderation server."""

import re
import time

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def parse_int(value: str | None) -> int | None:
    """
    Leniently parse a leading integer from text.

    Leading whitespace and a sign are allowed; anything after the digits
    is ignored.

    Examples:
        >>> parse_int("42")
        42
        >>> parse_int("42abc")
        42
        >>> parse_int("abc") is None
        True
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None
