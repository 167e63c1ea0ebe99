"""
Device Collector - one router, one pass.

Connecting → CapabilityProbe → Collecting ×N → InterfaceEnumeration →
SessionListing → Closing. Only a connection failure ends the pass early;
every other failure is logged and the pass moves on. The session is closed
on every exit path.
"""
from __future__ import annotations

import asyncio
import logging
import time as _time
from typing import Any, Mapping

from telemetry_agent.core.exceptions import (
    CommandError,
    CommandTimeoutError,
    ConnectError,
)
from telemetry_agent.core.types import DeviceResult
from telemetry_agent.normalize.point_builder import PointBuilder
from telemetry_agent.routeros import commands as cmds
from telemetry_agent.routeros.client import ClientFactory, DeviceClient, Row

logger = logging.getLogger(__name__)


class DeviceCollector:
    """Collect every dataset from one router and emit points."""

    def __init__(
        self,
        client_factory: ClientFactory,
        builder: PointBuilder,
        connect_timeout: float = 10.0,
        command_timeout: float = 10.0,
    ) -> None:
        self._client_factory = client_factory
        self._builder = builder
        self._connect_timeout = connect_timeout
        self._command_timeout = command_timeout

    async def collect(self, host: str) -> DeviceResult:
        """
        Run one full pass against ``host``.

        Never raises; the outcome is reported in the returned DeviceResult.
        """
        t0 = _time.monotonic()
        result = DeviceResult(host=host)
        client: DeviceClient | None = None

        try:
            client = self._client_factory(host)
            logger.info("Connecting to %s...", host)
            try:
                await asyncio.wait_for(client.connect(), timeout=self._connect_timeout)
            except asyncio.TimeoutError:
                raise ConnectError(
                    f"Connect to {host} timed out after {self._connect_timeout}s"
                ) from None
            result.connected = True

            packages = await self._probe_capabilities(client, host)
            for command in cmds.build_command_list(packages):
                await self._collect_command(client, host, command, result)

            await self._collect_interfaces(client, host, result)
            await self._collect_sessions(client, host, result)

        except ConnectError as e:
            logger.error("Failed to connect to %s: %s", host, e)
            result.errors.append(str(e))
        except Exception as e:
            logger.exception("Collection aborted for %s: %s", host, e)
            result.errors.append(f"{type(e).__name__}: {e}")
        finally:
            if client is not None:
                await self._close(client, host)

        logger.info(
            "Collected %s: %d points, %d failed commands, %.2fs",
            host, result.points, len(result.failed_commands),
            _time.monotonic() - t0,
        )
        return result

    # ── Steps ────────────────────────────────────────────────────

    async def _run(
        self,
        client: DeviceClient,
        command: str,
        args: Mapping[str, Any] | None = None,
    ) -> list[Row]:
        """Execute one command under the per-command deadline."""
        try:
            rows = await asyncio.wait_for(
                client.execute(command, args), timeout=self._command_timeout,
            )
        except asyncio.TimeoutError:
            raise CommandTimeoutError(
                f"{command} timed out after {self._command_timeout}s"
            ) from None
        if rows is None:
            return []
        if isinstance(rows, Mapping):
            return [dict(rows)]
        return list(rows)

    async def _probe_capabilities(self, client: DeviceClient, host: str) -> set[str]:
        """Enabled package names; empty (optional commands skipped) on failure."""
        try:
            rows = await self._run(client, cmds.PACKAGE_LIST)
        except Exception as e:
            logger.warning(
                "Capability probe failed on %s, skipping optional commands: %s",
                host, e,
            )
            return set()

        packages = cmds.enabled_packages(rows)
        logger.debug("Enabled packages on %s: %s", host, sorted(packages))
        return packages

    async def _collect_command(
        self,
        client: DeviceClient,
        host: str,
        command: str,
        result: DeviceResult,
    ) -> None:
        """One inventory command → one point per row."""
        measurement = cmds.measurement_for(command)
        try:
            rows = await self._run(client, command)
            for row in rows:
                if self._builder.write(measurement, row, None, host) is not None:
                    result.points += 1
        except CommandTimeoutError as e:
            logger.warning("Timeout on %s for %s: %s", command, host, e)
            result.failed_commands.append(command)
            result.errors.append(str(e))
        except CommandError as e:
            logger.warning("Command %s failed on %s: %s", command, host, e)
            result.failed_commands.append(command)
            result.errors.append(str(e))
        except Exception as e:
            logger.exception("Unexpected error on %s for %s", command, host)
            result.failed_commands.append(command)
            result.errors.append(f"{command}: {type(e).__name__}: {e}")

    async def _collect_interfaces(
        self, client: DeviceClient, host: str, result: DeviceResult,
    ) -> None:
        """Static interface attributes merged with a one-shot traffic sample."""
        try:
            interfaces = await self._run(client, cmds.INTERFACE_LIST)
        except Exception as e:
            logger.warning("Failed to list interfaces on %s: %s", host, e)
            result.failed_commands.append(cmds.INTERFACE_LIST)
            result.errors.append(str(e))
            return

        logger.debug("Found %d interfaces on %s", len(interfaces), host)
        for iface in interfaces:
            name = iface.get("name")
            if not name:
                continue

            sample: Row = {}
            try:
                rows = await self._run(
                    client,
                    cmds.INTERFACE_MONITOR,
                    {"interface": name, "once": True},
                )
                sample = rows[0] if rows else {}
            except Exception as e:
                logger.warning(
                    "Traffic sample failed for %s on %s: %s", name, host, e,
                )
                result.errors.append(f"{cmds.INTERFACE_MONITOR} {name}: {e}")

            combined = {**iface, **sample}
            combined.pop("name", None)
            try:
                point = self._builder.write(
                    cmds.INTERFACE_MEASUREMENT, combined,
                    {cmds.INTERFACE_TAG: name}, host,
                )
            except Exception:
                logger.exception("Failed to build interface point %s on %s", name, host)
                continue
            if point is not None:
                result.points += 1

    async def _collect_sessions(
        self, client: DeviceClient, host: str, result: DeviceResult,
    ) -> None:
        """Active hotspot clients; routers without hotspot just yield nothing."""
        try:
            sessions = await self._run(client, cmds.HOTSPOT_ACTIVE)
        except Exception as e:
            logger.info("No hotspot sessions collected on %s: %s", host, e)
            return

        if sessions:
            logger.debug("Found %d active hotspot sessions on %s", len(sessions), host)
        for entry in sessions:
            # the user name is the tag; a field of the same name is not written
            entry = dict(entry)
            user = entry.pop(cmds.HOTSPOT_TAG, None)
            tags = {cmds.HOTSPOT_TAG: user} if user else {}
            try:
                point = self._builder.write(cmds.HOTSPOT_MEASUREMENT, entry, tags, host)
            except Exception:
                logger.exception("Failed to build hotspot point on %s", host)
                continue
            if point is not None:
                result.points += 1

    @staticmethod
    async def _close(client: DeviceClient, host: str) -> None:
        try:
            await client.close()
        except Exception as e:
            logger.warning("Error closing session to %s: %s", host, e)
