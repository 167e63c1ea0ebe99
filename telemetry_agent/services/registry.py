"""
Device Registry.

Returns the router addresses to poll: from the ``routers`` table when a
registry database is configured, otherwise (or when the database is down)
from the static ROUTER_HOSTS list.
"""
from __future__ import annotations

import logging

from sqlalchemy import select

from telemetry_agent.core.exceptions import RegistryError
from telemetry_agent.db import base as db_base
from telemetry_agent.db.models import Router

logger = logging.getLogger(__name__)


def _unique(hosts: list[str]) -> list[str]:
    """Trim, drop blanks, de-duplicate preserving order."""
    seen: set[str] = set()
    result: list[str] = []
    for host in hosts:
        host = host.strip()
        if host and host not in seen:
            seen.add(host)
            result.append(host)
    return result


class DeviceRegistry:
    """Read the current device list once per cycle."""

    def __init__(
        self,
        use_database: bool,
        static_hosts: list[str] | None = None,
    ) -> None:
        self._use_database = use_database
        self._static_hosts = _unique(list(static_hosts or []))

    async def list_devices(self) -> list[str]:
        """
        Current router addresses.

        Raises:
            RegistryError: database unavailable and no static fallback.
        """
        if not self._use_database:
            return list(self._static_hosts)

        try:
            return await self._query_database()
        except Exception as e:
            if self._static_hosts:
                logger.warning(
                    "Registry query failed, using ROUTER_HOSTS fallback (%d hosts): %s",
                    len(self._static_hosts), e,
                )
                return list(self._static_hosts)
            raise RegistryError(f"Device registry unavailable: {e}") from e

    async def _query_database(self) -> list[str]:
        stmt = select(Router.ip_address).where(
            Router.ip_address.is_not(None),
            Router.ip_address != "",
        ).order_by(Router.id)

        async with db_base.get_session_context() as session:
            result = await session.execute(stmt)
            addresses = [row for row in result.scalars().all() if row]

        return _unique(addresses)
