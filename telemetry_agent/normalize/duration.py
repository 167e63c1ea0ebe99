"""
RouterOS elapsed-time parsing.

RouterOS renders uptimes and ages as ``1w2d3h4m5s`` with any subset of
segments present. Each segment is matched on its own, so the order of the
segments does not matter.
"""
from __future__ import annotations

import re

_SEGMENTS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"(?<!\d)(\d+)w"), 604800),
    (re.compile(r"(?<!\d)(\d+)d"), 86400),
    (re.compile(r"(?<!\d)(\d+)h"), 3600),
    # "120ms" is milliseconds, not minutes
    (re.compile(r"(?<!\d)(\d+)m(?!s)"), 60),
    (re.compile(r"(?<!\d)(\d+)s"), 1),
)


def parse_duration(value: object) -> int:
    """
    Convert a RouterOS duration string to whole seconds.

    Returns 0 for anything that is not a string or has no recognizable
    segment; duration fields are best-effort.

    >>> parse_duration("1d2h")
    93600
    """
    if not isinstance(value, str) or not value:
        return 0

    total = 0
    for pattern, multiplier in _SEGMENTS:
        match = pattern.search(value)
        if match:
            total += int(match.group(1)) * multiplier
    return total
