"""
RouterOS API client.

The collector only sees the DeviceClient contract:

- connect()                 - open and log in
- execute(command, args)    - run one command, return all reply rows
- close()                   - release the session

RouterOSClient is the single integration of librouteros. librouteros is
blocking, so every call runs in a worker thread via asyncio.to_thread.

NOTE: librouteros is imported inside the worker functions so that the
normalization and collection code can be imported and tested without it.
"""
from __future__ import annotations

import asyncio
import logging
import ssl
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from telemetry_agent.core.config import Settings
from telemetry_agent.core.exceptions import CommandError, ConnectError

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class DeviceClient(Protocol):
    """Fixed interface every device client implements."""

    async def connect(self) -> None: ...

    async def execute(
        self, command: str, args: Mapping[str, Any] | None = None,
    ) -> list[Row]: ...

    async def close(self) -> None: ...


ClientFactory = Callable[[str], DeviceClient]


@dataclass
class RouterOSTarget:
    """Connection parameters for a single router."""

    host: str
    username: str
    password: str = ""
    port: int = 8728
    timeout: float = 10.0
    use_ssl: bool = False


class RouterOSClient:
    """
    DeviceClient over librouteros.

    Calls on one session are serialized: when a caller abandons a call on
    timeout, its worker thread still owns the socket until the reply is read,
    and the next call waits for it.
    """

    def __init__(self, target: RouterOSTarget) -> None:
        self._target = target
        self._api: Any = None
        self._lock = threading.Lock()

    @property
    def host(self) -> str:
        return self._target.host

    @property
    def connected(self) -> bool:
        return self._api is not None

    def _connect_sync(self) -> Any:
        import librouteros
        from librouteros.exceptions import LibRouterosError

        kwargs: dict[str, Any] = {
            "port": self._target.port,
            "timeout": self._target.timeout,
        }
        if self._target.use_ssl:
            ctx = ssl.create_default_context()
            # RouterOS ships self-signed api-ssl certificates
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            kwargs["ssl_wrapper"] = ctx.wrap_socket

        try:
            return librouteros.connect(
                host=self._target.host,
                username=self._target.username,
                password=self._target.password,
                **kwargs,
            )
        except (LibRouterosError, OSError) as e:
            raise ConnectError(
                f"Cannot connect to {self._target.host}:{self._target.port}: {e}"
            ) from e

    def _execute_sync(self, command: str, args: Mapping[str, Any]) -> list[Row]:
        from librouteros.exceptions import LibRouterosError, MultiTrapError, TrapError

        with self._lock:
            if self._api is None:
                raise CommandError(f"{command}: session to {self.host} is closed")
            try:
                return [dict(row) for row in self._api(command, **args)]
            except (TrapError, MultiTrapError) as e:
                raise CommandError(f"{command} failed on {self.host}: {e}") from e
            except (LibRouterosError, OSError) as e:
                # replies carry no tags: unread sentences would be taken as
                # the answer to the next command
                self._drop_session()
                raise CommandError(
                    f"{command} failed on {self.host}, session closed: {e}"
                ) from e

    def _drop_session(self) -> None:
        """Close the session after a transport error. Caller holds the lock."""
        api, self._api = self._api, None
        try:
            api.close()
        except Exception as e:
            logger.debug("Error closing broken session to %s: %s", self.host, e)

    def _close_sync(self) -> None:
        with self._lock:
            api, self._api = self._api, None
        if api is not None:
            api.close()

    async def connect(self) -> None:
        """
        Open the session.

        Raises:
            ConnectError: unreachable device or refused login.
        """
        login = asyncio.ensure_future(asyncio.to_thread(self._connect_sync))
        try:
            api = await asyncio.shield(login)
        except asyncio.CancelledError:
            # the worker thread cannot be interrupted; close its session
            # once the login it is running completes
            login.add_done_callback(self._discard_late_session)
            raise
        self._api = api
        logger.debug("Connected to %s:%d", self.host, self._target.port)

    def _discard_late_session(self, login: "asyncio.Future[Any]") -> None:
        if login.cancelled() or login.exception() is not None:
            return
        logger.info("Closing late session to %s after connect timeout", self.host)
        try:
            login.result().close()
        except Exception as e:
            logger.debug("Error closing late session to %s: %s", self.host, e)

    async def execute(
        self, command: str, args: Mapping[str, Any] | None = None,
    ) -> list[Row]:
        """
        Run one command and return every reply row.

        Args are sent as ``=key=value`` words (True becomes ``yes``).

        Raises:
            CommandError: trap from the device or a broken session.
        """
        return await asyncio.to_thread(self._execute_sync, command, dict(args or {}))

    async def close(self) -> None:
        """Close the session; safe to call more than once."""
        await asyncio.to_thread(self._close_sync)


def make_client_factory(settings: Settings) -> ClientFactory:
    """Build a host → RouterOSClient factory from settings."""

    def factory(host: str) -> RouterOSClient:
        return RouterOSClient(
            RouterOSTarget(
                host=host,
                username=settings.mikrotik_user,
                password=settings.mikrotik_password,
                port=settings.mikrotik_api_port,
                timeout=settings.connect_timeout_seconds,
                use_ssl=settings.mikrotik_use_ssl,
            )
        )

    return factory
