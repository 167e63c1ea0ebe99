"""
Collection Cycle.

One pass: fetch the device list → collect every device → flush the sink.
A failing device never stops the others and a failing flush never stops
the next cycle.
"""
from __future__ import annotations

import asyncio
import logging
import time as _time

from telemetry_agent.core.exceptions import RegistryError, SinkFlushError
from telemetry_agent.core.types import CycleSummary, DeviceResult
from telemetry_agent.routeros.collector import DeviceCollector
from telemetry_agent.services.registry import DeviceRegistry
from telemetry_agent.services.sink import InfluxSink
from telemetry_agent.services.system_log import format_error_detail, write_log

logger = logging.getLogger(__name__)


class CollectionCycle:
    """Run one poll-all-devices-then-flush pass."""

    def __init__(
        self,
        registry: DeviceRegistry,
        collector: DeviceCollector,
        sink: InfluxSink,
        parallel: bool = True,
        max_concurrency: int = 20,
    ) -> None:
        self._registry = registry
        self._collector = collector
        self._sink = sink
        self._parallel = parallel
        self._max_concurrency = max(1, max_concurrency)

    async def run(self) -> CycleSummary:
        """Run one cycle and report what happened."""
        t0 = _time.monotonic()
        summary = CycleSummary()
        logger.info("Collection cycle starting")

        try:
            hosts = await self._registry.list_devices()
        except RegistryError as e:
            logger.error("Skipping cycle, device list unavailable: %s", e)
            await write_log(
                level="ERROR",
                source="registry",
                summary=f"Cycle skipped: device list unavailable ({type(e).__name__})",
                detail=format_error_detail(exc=e),
            )
            summary.skipped = True
            return summary

        if not hosts:
            logger.warning("Skipping cycle, device list is empty")
            summary.skipped = True
            return summary

        logger.info("Routers to poll (%d): %s", len(hosts), ", ".join(hosts))
        summary.devices = len(hosts)

        if self._parallel:
            results = await self._collect_parallel(hosts)
        else:
            results = [await self._collect_one(host) for host in hosts]

        for result in results:
            summary.points += result.points
            if result.connected:
                summary.connected += 1
            else:
                summary.failed += 1

        try:
            await self._sink.flush()
            summary.flushed = True
        except SinkFlushError as e:
            logger.error("Failed to flush points: %s", e)
            await write_log(
                level="ERROR",
                source="sink",
                summary=f"Flush failed, {summary.points} points lost",
                detail=format_error_detail(exc=e),
            )

        summary.elapsed = _time.monotonic() - t0
        logger.info(
            "Collection cycle done: %d/%d routers, %d points, %.2fs",
            summary.connected, summary.devices, summary.points, summary.elapsed,
        )
        return summary

    async def _collect_parallel(self, hosts: list[str]) -> list[DeviceResult]:
        sem = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(host: str) -> DeviceResult:
            async with sem:
                return await self._collect_one(host)

        return list(await asyncio.gather(*[_bounded(h) for h in hosts]))

    async def _collect_one(self, host: str) -> DeviceResult:
        """Device-level boundary: nothing a device does escapes this call."""
        try:
            result = await self._collector.collect(host)
        except Exception as e:
            logger.exception("Collection crashed for %s", host)
            result = DeviceResult(host=host, errors=[f"{type(e).__name__}: {e}"])

        if not result.connected:
            await write_log(
                level="WARNING",
                source="collector",
                summary=f"Router {host} not collected: {'; '.join(result.errors)[:300]}",
                router_host=host,
            )
        return result
