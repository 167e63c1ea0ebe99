"""
Field Classifier.

Decides, per (measurement kind, field key, raw value), what gets written.
Precedence, first match wins:

1. special transforms (duration → ``<key>_seconds``, ``dBm@rate`` →
   ``<key>_dbm``, paired ``tx/rx`` → ``tx_<key>`` / ``rx_<key>``)
2. ignore list
3. forced-string list
4. forced-numeric list (always float, dropped when not numeric)
5. inference from the lexical shape of the value

The classifier is a pure function of its tables; it keeps no state between
calls.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from telemetry_agent.core.enums import FieldDisposition, UnknownFieldPolicy
from telemetry_agent.core.types import FieldValue
from telemetry_agent.normalize.duration import parse_duration
from telemetry_agent.normalize.field_tables import FieldTables, sanitize_key
from telemetry_agent.normalize.units import (
    parse_number,
    parse_quantity,
    parse_signal,
    split_pair,
)

logger = logging.getLogger(__name__)

ClassifiedField = tuple[str, FieldValue]


def value_text(value: Any) -> str | None:
    """
    Render a raw RouterOS value as trimmed text.

    None stays None. Booleans become ``true``/``false`` (the API's own
    spelling), composites become compact JSON.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value).strip()


class FieldClassifier:
    """Apply the classification tables to single fields."""

    def __init__(
        self,
        tables: FieldTables,
        unknown_policy: UnknownFieldPolicy = UnknownFieldPolicy.WRITE,
    ) -> None:
        self._tables = tables
        self._unknown_policy = UnknownFieldPolicy(unknown_policy)

    @property
    def tables(self) -> FieldTables:
        return self._tables

    @property
    def unknown_policy(self) -> UnknownFieldPolicy:
        return self._unknown_policy

    def disposition(self, measurement: str, key: str) -> FieldDisposition:
        """Table disposition of a sanitized key (special transforms excluded)."""
        table = self._tables.table_for(measurement)
        if key in table.ignore:
            return FieldDisposition.IGNORE
        if key in table.string:
            return FieldDisposition.FORCE_STRING
        if key in table.numeric:
            return FieldDisposition.FORCE_NUMERIC
        return FieldDisposition.INFER

    def classify(
        self, measurement: str, raw_key: str, value: Any,
    ) -> list[ClassifiedField]:
        """
        Classify one raw field.

        Args:
            measurement: Measurement kind (already normalized)
            raw_key: Vendor field name, e.g. ``mac-address``
            value: Raw value as returned by the device

        Returns:
            Zero or more (sanitized key, typed value) pairs.
        """
        key = sanitize_key(raw_key)
        text = value_text(value)
        if not key or not text:
            return []

        special = self._special_transform(measurement, key, text)
        if special is not None:
            return special

        disposition = self.disposition(measurement, key)

        if disposition is FieldDisposition.IGNORE:
            return []

        if disposition is FieldDisposition.FORCE_STRING:
            return [(key, text)]

        if disposition is FieldDisposition.FORCE_NUMERIC:
            number = parse_quantity(text)
            if number is None:
                logger.debug(
                    "Dropping non-numeric value for numeric field %s.%s=%r",
                    measurement, key, text,
                )
                return []
            return [(key, number)]

        if self._unknown_policy is UnknownFieldPolicy.DROP:
            return []
        return [(key, self.infer(text))]

    @staticmethod
    def infer(text: str) -> FieldValue:
        """int / float for numeric-looking text, the text itself otherwise."""
        number = parse_number(text)
        return text if number is None else number

    # ── Special transforms ───────────────────────────────────────

    def _special_transform(
        self, measurement: str, key: str, text: str,
    ) -> list[ClassifiedField] | None:
        """Return the rewritten fields, or None when no transform applies."""
        if self._tables.is_duration_key(key):
            return [(f"{key}_seconds", parse_duration(text))]

        dbm = parse_signal(text)
        if dbm is not None:
            return [(f"{key}_dbm", dbm)]

        if key in self._tables.table_for(measurement).paired:
            pair = split_pair(text)
            if pair is not None:
                tx, rx = pair
                return [(f"tx_{key}", tx), (f"rx_{key}", rx)]

        return None
