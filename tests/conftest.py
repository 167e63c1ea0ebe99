"""Root conftest - shared fixtures for all tests."""
from __future__ import annotations

import asyncio
from typing import Any, Mapping

import pytest

from telemetry_agent.core.exceptions import CommandError, ConnectError, SinkWriteError
from telemetry_agent.core.types import Point
from telemetry_agent.normalize.classifier import FieldClassifier
from telemetry_agent.normalize.field_tables import FieldTables, load_field_tables
from telemetry_agent.normalize.point_builder import PointBuilder

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


class RecordingSink:
    """In-memory stand-in for InfluxSink."""

    def __init__(self, fail_measurements: set[str] | None = None) -> None:
        self.points: list[Point] = []
        self.batches: list[list[Point]] = []
        self.fail_measurements = fail_measurements or set()
        self.flush_error: Exception | None = None

    def write_point(self, point: Point) -> None:
        if point.measurement in self.fail_measurements:
            raise SinkWriteError(f"refused {point.measurement}")
        self.points.append(point)

    async def flush(self) -> int:
        batch, self.points = self.points, []
        self.batches.append(batch)
        if self.flush_error is not None:
            raise self.flush_error
        return len(batch)

    def by_measurement(self, measurement: str) -> list[Point]:
        return [p for batch in [*self.batches, self.points] for p in batch
                if p.measurement == measurement]


class FakeRouterClient:
    """
    Scripted DeviceClient.

    ``responses`` maps a command path to rows, to an exception instance
    (raised), or to a callable ``(args) -> rows``. ``delays`` maps a command
    path to seconds to sleep before answering.
    """

    def __init__(
        self,
        host: str,
        responses: Mapping[str, Any] | None = None,
        delays: Mapping[str, float] | None = None,
        connect_error: Exception | None = None,
        connect_delay: float = 0.0,
    ) -> None:
        self.host = host
        self.responses = dict(responses or {})
        self.delays = dict(delays or {})
        self.connect_error = connect_error
        self.connect_delay = connect_delay
        self.calls: list[tuple[str, dict]] = []
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def execute(self, command: str, args: Mapping[str, Any] | None = None) -> list[dict]:
        self.calls.append((command, dict(args or {})))
        if command in self.delays:
            await asyncio.sleep(self.delays[command])
        if command not in self.responses:
            raise CommandError(f"no such command path: {command}")
        response = self.responses[command]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(dict(args or {}))
        return [dict(r) for r in response]

    async def close(self) -> None:
        self.closed = True

    def commands(self) -> list[str]:
        return [c for c, _ in self.calls]


def router_responses(**overrides: Any) -> dict[str, Any]:
    """A small but complete RouterOS reply set for one router."""
    responses: dict[str, Any] = {
        "/system/package/print": [
            {"name": "routeros", "disabled": False},
            {"name": "wifiwave2", "disabled": False},
        ],
        "/system/resource/print": [{
            "uptime": "1w2d3h4m5s",
            "version": "7.12.1 (stable)",
            "cpu-load": "37%",
            "free-memory": "104857600",
            "cpu-count": "4",
            "board-name": "hAP ax2",
        }],
        "/system/clock/print": [{"time": "10:00:00", "date": "2024-01-02", "gmt-offset": "+00:00"}],
        "/system/health/print": [{".id": "*1", "name": "temperature", "value": "41", "type": "C"}],
        "/system/routerboard/print": [{"model": "C52iG-5HaxD2HaxD", "serial-number": "HF1234"}],
        "/ip/address/print": [{".id": "*1", "address": "10.0.0.1/24", "interface": "bridge"}],
        "/ip/arp/print": [{".id": "*2", "address": "10.0.0.5", "mac-address": "AA:BB:CC:00:11:22"}],
        "/ip/dhcp-server/lease/print": [{
            ".id": "*3", "address": "10.0.0.50", "host-name": "laptop",
            "expires-after": "9m30s", "last-seen": "30s",
        }],
        "/user/print": [{".id": "*4", "name": "admin", "group": "full"}],
        "/interface/wifiwave2/registration-table/print": [{
            "mac-address": "11:22:33:44:55:66",
            "signal-strength": "-55dBm@6Mbps",
            "bytes": "1200/3400",
            "uptime": "1h",
        }],
        "/interface/print": [
            {"name": "ether1", "type": "ether", "mtu": "1500", "running": True},
            {"name": "wlan 2", "type": "wifi", "running": False},
        ],
        "/interface/monitor-traffic": lambda args: [{
            "name": args["interface"],
            "rx-bits-per-second": "8000",
            "tx-bits-per-second": "1600",
        }],
        "/ip/hotspot/active/print": [
            {".id": "*9", "user": "guest1", "address": "10.5.0.2", "uptime": "5m", "bytes-in": "100"},
        ],
    }
    responses.update(overrides)
    return responses


@pytest.fixture(scope="session")
def field_tables() -> FieldTables:
    """The packaged classification tables."""
    return load_field_tables()


@pytest.fixture
def classifier(field_tables: FieldTables) -> FieldClassifier:
    return FieldClassifier(field_tables)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def builder(classifier: FieldClassifier, sink: RecordingSink) -> PointBuilder:
    return PointBuilder(classifier, sink)


@pytest.fixture
def connect_refused() -> ConnectError:
    return ConnectError("connection refused")


@pytest.fixture
def responses() -> dict[str, Any]:
    """Fresh copy of the standard router reply set; tests may mutate it."""
    return router_responses()


@pytest.fixture
def fake_client_cls() -> type[FakeRouterClient]:
    return FakeRouterClient


@pytest.fixture
def recording_sink_cls() -> type[RecordingSink]:
    return RecordingSink


@pytest.fixture
async def registry_db():
    """Configure an in-memory SQLite registry with all tables created."""
    from telemetry_agent.db import base as db_base

    db_base.configure_db(TEST_DB_URL)
    await db_base.init_db()
    yield db_base
    await db_base.close_db()
