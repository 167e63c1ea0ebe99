"""
Time-series sink - InfluxDB 2.x.

Points are queued in memory by write_point() and transmitted by flush() in
one request per cycle. A failed flush loses its batch; there is no retry.

NOTE: the async client needs a running event loop (it owns an aiohttp
session), so it is created in open(), not in __init__().
"""
from __future__ import annotations

import logging
import math
from typing import Any

from influxdb_client import Point as InfluxPoint
from influxdb_client import WritePrecision

from telemetry_agent.core.config import Settings
from telemetry_agent.core.exceptions import SinkFlushError, SinkWriteError
from telemetry_agent.core.types import Point

logger = logging.getLogger(__name__)


def to_influx_point(point: Point) -> InfluxPoint:
    """
    Convert a Point to an influxdb_client Point.

    Raises:
        SinkWriteError: no fields, or a value line protocol cannot carry.
    """
    if not point.fields:
        raise SinkWriteError(f"{point.measurement}: point has no fields")

    p = InfluxPoint(point.measurement)
    for key, value in point.tags.items():
        p.tag(key, value)
    for key, value in point.fields.items():
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise SinkWriteError(
                f"{point.measurement}.{key}: unsupported value type {type(value).__name__}"
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise SinkWriteError(f"{point.measurement}.{key}: non-finite value {value}")
        p.field(key, value)
    p.time(point.time, WritePrecision.S)
    return p


class InfluxSink:
    """Org/bucket-scoped batching writer."""

    def __init__(
        self,
        url: str,
        token: str,
        org: str,
        bucket: str,
        timeout_ms: int = 10_000,
    ) -> None:
        self._url = url
        self._token = token
        self._org = org
        self._bucket = bucket
        self._timeout_ms = timeout_ms
        self._client: Any = None
        self._write_api: Any = None
        self._batch: list[InfluxPoint] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "InfluxSink":
        return cls(
            url=settings.influxdb_url,
            token=settings.influxdb_token,
            org=settings.influxdb_org,
            bucket=settings.influxdb_bucket,
            timeout_ms=settings.influxdb_timeout_ms,
        )

    @property
    def pending(self) -> int:
        """Points queued since the last flush."""
        return len(self._batch)

    async def open(self) -> None:
        """Create the async InfluxDB client."""
        from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

        self._client = InfluxDBClientAsync(
            url=self._url,
            token=self._token,
            org=self._org,
            timeout=self._timeout_ms,
        )
        self._write_api = self._client.write_api()
        logger.info("InfluxDB sink configured for %s (bucket=%s)", self._url, self._bucket)

    def write_point(self, point: Point) -> None:
        """
        Queue one point.

        Raises:
            SinkWriteError: the point cannot be represented.
        """
        try:
            self._batch.append(to_influx_point(point))
        except SinkWriteError:
            raise
        except Exception as e:
            raise SinkWriteError(f"{point.measurement}: {e}") from e

    async def flush(self) -> int:
        """
        Transmit every queued point in one request.

        Points queued while the request is in flight go to the next batch.

        Returns:
            Number of points transmitted.

        Raises:
            SinkFlushError: transmission failed; the batch is dropped.
        """
        batch, self._batch = self._batch, []
        if not batch:
            return 0
        if self._write_api is None:
            raise SinkFlushError(
                f"InfluxDB sink is not open, {len(batch)} points dropped"
            )

        try:
            await self._write_api.write(
                bucket=self._bucket,
                org=self._org,
                record=batch,
                write_precision=WritePrecision.S,
            )
        except Exception as e:
            raise SinkFlushError(
                f"Failed to write {len(batch)} points to {self._bucket}: {e}"
            ) from e

        logger.info("Flushed %d points to InfluxDB bucket %s", len(batch), self._bucket)
        return len(batch)

    async def close(self) -> None:
        """Release the HTTP client."""
        if self._client is not None:
            await self._client.close()
        self._client = None
        self._write_api = None
