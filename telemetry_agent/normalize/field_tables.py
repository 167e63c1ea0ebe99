"""
Field classification tables.

Tables are static data (``telemetry_agent/data/field_tables.yaml``), loaded
once at startup into an immutable FieldTables value and handed to the
classifier by reference.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_TABLES_PATH = Path(__file__).resolve().parent.parent / "data" / "field_tables.yaml"

_INVALID_KEY_CHARS = re.compile(r"[^A-Za-z0-9_]")

_EMPTY: frozenset[str] = frozenset()


def sanitize_key(key: object) -> str:
    """
    Normalize a field or tag key.

    Lower-case, every char outside [A-Za-z0-9_] becomes ``_``, leading and
    trailing underscores are trimmed. Idempotent.
    """
    return _INVALID_KEY_CHARS.sub("_", str(key)).strip("_").lower()


@dataclass(frozen=True)
class MeasurementTable:
    """Forced classifications for one measurement kind."""

    ignore: frozenset[str] = _EMPTY
    string: frozenset[str] = _EMPTY
    numeric: frozenset[str] = _EMPTY
    paired: frozenset[str] = _EMPTY


EMPTY_TABLE = MeasurementTable()


@dataclass(frozen=True)
class FieldTables:
    """All classification tables plus the global duration key list."""

    measurements: Mapping[str, MeasurementTable] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    duration_keys: frozenset[str] = _EMPTY

    def table_for(self, measurement: str) -> MeasurementTable:
        """Table for a measurement kind; unknown kinds get no forced entries."""
        return self.measurements.get(measurement, EMPTY_TABLE)

    def is_duration_key(self, key: str) -> bool:
        """True when ``key`` (sanitized) holds RouterOS elapsed-time text."""
        if key in self.duration_keys:
            return True
        return any(key.endswith("_" + suffix) for suffix in self.duration_keys)


def _key_set(values: Any) -> frozenset[str]:
    if not values:
        return _EMPTY
    return frozenset(sanitize_key(v) for v in values)


def parse_field_tables(data: Mapping[str, Any]) -> FieldTables:
    """Build FieldTables from the decoded YAML document."""
    measurements: dict[str, MeasurementTable] = {}
    for name, entry in (data.get("measurements") or {}).items():
        entry = entry or {}
        unknown = set(entry) - {"ignore", "string", "numeric", "paired"}
        if unknown:
            raise ValueError(
                f"Unknown classification lists for '{name}': {sorted(unknown)}"
            )
        measurements[sanitize_key(name)] = MeasurementTable(
            ignore=_key_set(entry.get("ignore")),
            string=_key_set(entry.get("string")),
            numeric=_key_set(entry.get("numeric")),
            paired=_key_set(entry.get("paired")),
        )

    return FieldTables(
        measurements=MappingProxyType(measurements),
        duration_keys=_key_set(data.get("duration_keys")),
    )


def load_field_tables(path: str | Path | None = None) -> FieldTables:
    """
    Load classification tables from YAML.

    Args:
        path: Alternative tables file; the packaged file when omitted.

    Returns:
        Immutable FieldTables.
    """
    tables_path = Path(path) if path else DEFAULT_TABLES_PATH
    with open(tables_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    tables = parse_field_tables(data)
    logger.info(
        "Loaded field tables from %s: %d measurement kinds",
        tables_path, len(tables.measurements),
    )
    return tables
