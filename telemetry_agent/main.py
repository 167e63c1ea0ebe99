"""
RouterOS Telemetry Agent - Entry Point.

Startup: validate settings, load field tables, open the registry database
and the InfluxDB sink, start the scheduler.
Shutdown (SIGINT / SIGTERM): stop the scheduler, flush and close the sink,
close the database.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from pydantic import ValidationError

from telemetry_agent import __version__
from telemetry_agent.core.config import Settings, get_settings
from telemetry_agent.core.exceptions import ConfigError, SinkFlushError
from telemetry_agent.db import base as db_base
from telemetry_agent.normalize.classifier import FieldClassifier
from telemetry_agent.normalize.field_tables import load_field_tables
from telemetry_agent.normalize.point_builder import PointBuilder
from telemetry_agent.routeros.client import make_client_factory
from telemetry_agent.routeros.collector import DeviceCollector
from telemetry_agent.services.cycle import CollectionCycle
from telemetry_agent.services.registry import DeviceRegistry
from telemetry_agent.services.scheduler import SchedulerService
from telemetry_agent.services.sink import InfluxSink
from telemetry_agent.services.system_log import enable_db_logging

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Agent:
    """Wired components for one agent process."""

    settings: Settings
    sink: InfluxSink
    registry: DeviceRegistry
    cycle: CollectionCycle


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # both are chatty at DEBUG
    logging.getLogger("librouteros").setLevel(logging.WARNING)
    logging.getLogger("influxdb_client").setLevel(logging.WARNING)


def build_agent(settings: Settings) -> Agent:
    """Wire every component from settings (no I/O)."""
    tables = load_field_tables(settings.field_tables_path or None)
    classifier = FieldClassifier(tables, settings.unknown_field_policy)
    sink = InfluxSink.from_settings(settings)
    builder = PointBuilder(classifier, sink)

    collector = DeviceCollector(
        client_factory=make_client_factory(settings),
        builder=builder,
        connect_timeout=settings.connect_timeout_seconds,
        command_timeout=settings.command_timeout_seconds,
    )

    if not settings.registry_configured:
        logger.warning("Registry database not configured, using ROUTER_HOSTS")
    registry = DeviceRegistry(
        use_database=settings.registry_configured,
        static_hosts=settings.router_host_list,
    )

    cycle = CollectionCycle(
        registry=registry,
        collector=collector,
        sink=sink,
        parallel=settings.parallel_collection,
        max_concurrency=settings.max_concurrent_devices,
    )
    return Agent(settings=settings, sink=sink, registry=registry, cycle=cycle)


@asynccontextmanager
async def lifespan(agent: Agent, init_tables: bool = False) -> AsyncGenerator[Agent, None]:
    """
    Open shared resources for the agent's lifetime.

    Startup: database engine (optional), InfluxDB client.
    Shutdown: last flush, close the sink, dispose the database engine.
    """
    settings = agent.settings
    if settings.registry_configured:
        db_base.configure_db(settings.database_url)
        if init_tables:
            await db_base.init_db()
        enable_db_logging(settings.log_to_db)

    await agent.sink.open()
    try:
        yield agent
    finally:
        logger.info("Shutting down agent...")
        try:
            await agent.sink.flush()
        except SinkFlushError as e:
            logger.error("Final flush failed: %s", e)
        await agent.sink.close()
        enable_db_logging(False)
        await db_base.close_db()


async def run_forever(agent: Agent, init_tables: bool = False) -> None:
    """Run the scheduler until SIGINT / SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))

    async with lifespan(agent, init_tables=init_tables):
        scheduler = SchedulerService(agent.cycle, agent.settings.polling_interval_seconds)
        scheduler.start()
        try:
            await stop.wait()
            logger.info("Termination signal received")
        finally:
            await scheduler.stop()


async def run_once(agent: Agent, init_tables: bool = False) -> int:
    """Run a single cycle; exit status 0 when at least one router answered."""
    async with lifespan(agent, init_tables=init_tables):
        summary = await agent.cycle.run()
    if summary.skipped or summary.connected == 0:
        return 1
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="telemetry-agent",
        description="Poll RouterOS devices and write their metrics to InfluxDB.",
    )
    parser.add_argument("--once", action="store_true", help="run one cycle and exit")
    parser.add_argument(
        "--init-db", action="store_true",
        help="create the routers / system_logs tables if missing",
    )
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(args.log_level or settings.log_level)

    try:
        settings.validate_required()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    agent = build_agent(settings)
    logger.info(
        "Agent v%s starting: interval=%ds, parallel=%s",
        __version__, settings.polling_interval_seconds, settings.parallel_collection,
    )

    if args.once:
        return asyncio.run(run_once(agent, init_tables=args.init_db))

    asyncio.run(run_forever(agent, init_tables=args.init_db))
    return 0
