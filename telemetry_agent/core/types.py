"""
Core type definitions.

Dataclasses and types used across the application.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Union

# One row of one command, as returned by a device.
RawRecord = Mapping[str, Any]

FieldValue = Union[int, float, str]


@dataclass
class Point:
    """
    One time-series point (value object).

    tags always include ``router_host``. fields hold int, float or str only.
    """

    measurement: str
    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, FieldValue] = field(default_factory=dict)
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return (
            f"<Point {self.measurement} "
            f"host={self.tags.get('router_host')} fields={len(self.fields)}>"
        )


@dataclass
class DeviceResult:
    """Outcome of one device pass."""

    host: str
    connected: bool = False
    points: int = 0
    failed_commands: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class CycleSummary:
    """Outcome of one collection cycle."""

    devices: int = 0
    connected: int = 0
    failed: int = 0
    points: int = 0
    flushed: bool = False
    skipped: bool = False
    elapsed: float = 0.0
