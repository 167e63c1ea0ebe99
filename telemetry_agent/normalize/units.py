"""
Numeric and unit lexing for RouterOS values.

RouterOS returns everything as text. These helpers decide whether a text is
a number, strip known unit suffixes, and take apart the two compound shapes
the API uses (``-55dBm@6Mbps`` and ``tx/rx`` pairs).
"""
from __future__ import annotations

import re

NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

_QUANTITY_RE = re.compile(
    r"^(?P<num>[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?)\s*(?P<unit>[A-Za-z%]*)$"
)

_SIGNAL_RE = re.compile(r"^\s*(?P<dbm>[+-]?\d+)\s*dBm@", re.IGNORECASE)

_PAIR_RE = re.compile(r"^\s*(?P<tx>[^/,\s]+)\s*[/,]\s*(?P<rx>[^/,\s]+)\s*$")

# unit suffix (lower-cased) -> multiplier to the base unit
UNIT_MULTIPLIERS: dict[str, float] = {
    "": 1,
    "%": 1,
    "c": 1,
    "v": 1,
    "w": 1,
    "a": 1,
    "mhz": 1,
    "bps": 1,
    "kbps": 1e3,
    "mbps": 1e6,
    "gbps": 1e9,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
}


def is_numeric(text: str) -> bool:
    """True when the trimmed text is a plain signed integer or float."""
    return bool(NUMERIC_RE.match(text.strip()))


def parse_number(text: str) -> int | float | None:
    """
    Parse a plain number.

    Integer when there is no decimal point and no exponent, float otherwise,
    None when the text is not numeric.
    """
    text = text.strip()
    if not NUMERIC_RE.match(text):
        return None
    if "." in text or "e" in text or "E" in text:
        return float(text)
    return int(text)


def parse_quantity(text: str) -> float | None:
    """
    Parse a number with an optional unit suffix, scaled to the base unit.

    >>> parse_quantity("37%")
    37.0
    >>> parse_quantity("6Mbps")
    6000000.0
    """
    match = _QUANTITY_RE.match(text.strip())
    if not match:
        return None
    multiplier = UNIT_MULTIPLIERS.get(match.group("unit").lower())
    if multiplier is None:
        return None
    return float(match.group("num")) * multiplier


def parse_signal(text: str) -> int | None:
    """Leading dBm integer of a ``<int>dBm@<rate>`` signal value."""
    match = _SIGNAL_RE.match(text)
    if not match:
        return None
    return int(match.group("dbm"))


def split_pair(text: str) -> tuple[int | float, int | float] | None:
    """Split ``<tx>/<rx>`` (or ``<tx>,<rx>``) into two numbers."""
    match = _PAIR_RE.match(text)
    if not match:
        return None
    tx = parse_number(match.group("tx"))
    rx = parse_number(match.group("rx"))
    if tx is None or rx is None:
        return None
    return tx, rx
