"""
Point Builder.

Turns one raw device record into a Point (tags + typed fields) and hands it
to the sink. Sink failures are logged and never reach the collector.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from telemetry_agent.core.enums import FieldType
from telemetry_agent.core.exceptions import SinkWriteError
from telemetry_agent.core.types import FieldValue, Point, RawRecord
from telemetry_agent.normalize.classifier import FieldClassifier
from telemetry_agent.normalize.field_tables import sanitize_key

logger = logging.getLogger(__name__)

HOST_TAG = "router_host"
UNKNOWN_HOST = "unknown"


class PointWriter(Protocol):
    """Anything that accepts points (the time-series sink)."""

    def write_point(self, point: Point) -> None: ...


class FieldTypeLedger:
    """
    First-seen value type per (measurement kind, field key).

    InfluxDB fixes a field's type on first write; a later value of another
    type is rejected for the whole batch. The ledger coerces where that is
    lossless and refuses otherwise.
    """

    def __init__(self) -> None:
        self._types: dict[tuple[str, str], FieldType] = {}

    def __len__(self) -> int:
        return len(self._types)

    def type_of(self, measurement: str, key: str) -> FieldType | None:
        return self._types.get((measurement, key))

    def reconcile(
        self, measurement: str, key: str, value: FieldValue,
    ) -> FieldValue | None:
        """
        Return ``value`` in the key's established type, or None to drop it.

        The first value seen for a key establishes its type.
        """
        slot = (measurement, key)
        incoming = FieldType.of(value)
        known = self._types.get(slot)

        if known is None:
            self._types[slot] = incoming
            return value
        if known is incoming:
            return value

        if known is FieldType.FLOAT and incoming is FieldType.INTEGER:
            return float(value)
        if known is FieldType.STRING:
            return str(value)
        return None


class PointBuilder:
    """Build points through the classifier and submit them to a writer."""

    def __init__(
        self,
        classifier: FieldClassifier,
        writer: PointWriter,
        ledger: FieldTypeLedger | None = None,
    ) -> None:
        self._classifier = classifier
        self._writer = writer
        self._ledger = ledger if ledger is not None else FieldTypeLedger()

    @property
    def ledger(self) -> FieldTypeLedger:
        return self._ledger

    def build(
        self,
        measurement: str,
        record: RawRecord,
        extra_tags: Mapping[str, Any] | None = None,
        host: str | None = None,
    ) -> Point:
        """
        Build a Point from one raw record.

        Args:
            measurement: Measurement kind
            record: Raw field name → raw value
            extra_tags: Additional tags (sanitized, stringified, blanks skipped)
            host: Router address, tagged as ``router_host``

        Returns:
            The Point (possibly with no fields).
        """
        measurement = str(measurement).lower()
        point = Point(measurement=measurement)
        point.tags[HOST_TAG] = host or UNKNOWN_HOST

        for tag_key, tag_value in (extra_tags or {}).items():
            if tag_value is None or tag_value == "":
                continue
            key = sanitize_key(tag_key)
            if key:
                point.tags[key] = str(tag_value)

        for raw_key, raw_value in (record or {}).items():
            if raw_value is None:
                continue
            for key, value in self._classifier.classify(
                measurement, raw_key, raw_value,
            ):
                reconciled = self._ledger.reconcile(measurement, key, value)
                if reconciled is None:
                    logger.warning(
                        "Dropping %s.%s=%r: field already written as %s (router=%s)",
                        measurement, key, value,
                        self._ledger.type_of(measurement, key).value,
                        point.tags[HOST_TAG],
                    )
                    continue
                point.fields[key] = reconciled

        return point

    def write(
        self,
        measurement: str,
        record: RawRecord,
        extra_tags: Mapping[str, Any] | None = None,
        host: str | None = None,
    ) -> Point | None:
        """
        Build a Point and hand it to the writer.

        Returns:
            The submitted Point, or None when it had no fields or the
            writer refused it.
        """
        point = self.build(measurement, record, extra_tags, host)
        if not point.fields:
            logger.debug("Skipping %r: no fields after classification", point)
            return None

        try:
            self._writer.write_point(point)
        except SinkWriteError as e:
            logger.error(
                "Failed to queue point %s for %s: %s",
                point.measurement, point.tags[HOST_TAG], e,
            )
            return None
        return point
