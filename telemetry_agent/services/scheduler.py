"""
Scheduler Service.

Runs the collection cycle on a fixed interval using APScheduler. The first
cycle starts immediately. An overlapping tick is skipped (max_instances=1),
and an exception escaping a tick is logged so the timer keeps running.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from telemetry_agent.services.cycle import CollectionCycle
from telemetry_agent.services.system_log import format_error_detail, write_log

logger = logging.getLogger(__name__)

JOB_ID = "collection_cycle"


class SchedulerService:
    """Periodic driver for the collection cycle."""

    def __init__(self, cycle: CollectionCycle, interval_seconds: int) -> None:
        self.cycle = cycle
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": max(1, interval_seconds // 2),
            },
        )

    def start(self) -> None:
        """Register the cycle job and start the scheduler."""
        self.scheduler.add_job(
            self.run_tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            "Scheduler started: collection cycle every %ds", self.interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the scheduler without waiting for a running cycle."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            # AsyncIOScheduler may defer the shutdown to the next loop iteration
            await asyncio.sleep(0)
            logger.info("Scheduler stopped")

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_jobs(self) -> list[dict[str, Any]]:
        """Get list of all scheduled jobs."""
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": str(job.next_run_time),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    async def run_tick(self) -> None:
        """One scheduled tick. Never raises."""
        try:
            await self.cycle.run()
        except Exception as e:
            logger.exception("Collection cycle crashed: %s", e)
            try:
                await write_log(
                    level="ERROR",
                    source="scheduler",
                    summary=f"Collection cycle crashed ({type(e).__name__})",
                    detail=format_error_detail(exc=e),
                    module=JOB_ID,
                )
            except Exception:
                logger.error("Failed to record cycle crash")
