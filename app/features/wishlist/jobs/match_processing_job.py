"""
Match processing background job.

Runs weekly at the configured reveal time (Thursday 17:00 America/New_York by
default) to validate pending matches and reveal the ones that still hold.

Design:
- One run at a time per process (is_running guard)
- A failed run is logged and retried at the next interval, never crashes the loop
- Running twice for the same period is harmless

Usage:
    # Long-running worker process
    python -m app.jobs.worker match_processing

    # Single run, e.g. from cron
    python -m app.jobs.worker match_processing_once

    # Inside the API process (MATCH_PROCESSING_IN_APP=true)
    asyncio.create_task(start_match_processing_scheduler())
"""

import asyncio
from datetime import UTC, datetime

from app.db.pool import db_pool
from app.features.wishlist.domain import ProcessingError
from app.features.wishlist.services import MatchScheduler, WishlistService
from app.features.wishlist.services import match_scheduler as default_scheduler
from app.features.wishlist.services import wishlist_service as default_service
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

ERROR_RETRY_SECONDS = 300


class MatchProcessingJob:
    """Runs one processing pass and reports what happened."""

    def __init__(
        self,
        service: WishlistService | None = None,
        scheduler: MatchScheduler | None = None,
    ):
        self.service = service or default_service
        self.scheduler = scheduler or default_scheduler
        self.is_running = False

    async def run_once(self, now: datetime | None = None) -> dict:
        """
        Run match processing.

        Returns:
            dict: {
                "success": bool,
                "revealed_count": int,
                "invalidated_count": int,
                "skipped_count": int,
                "failed_count": int,
                "errors": list,
            }
        """
        if self.is_running:
            logger.warning("Match processing already running, skipping")
            return {"success": False, "error": "Already running"}

        self.is_running = True
        start_time = datetime.now(UTC)
        run_at = now or start_time

        logger.info("Starting match processing job", run_at=run_at.isoformat())

        result = {
            "success": True,
            "revealed_count": 0,
            "invalidated_count": 0,
            "skipped_count": 0,
            "failed_count": 0,
            "errors": [],
        }

        try:
            summary = await self.service.run_scheduled_processing(run_at)
            result.update(summary.as_dict())
        except ProcessingError as e:
            logger.error("Match processing could not run", error=str(e))
            result["success"] = False
            result["errors"].append(str(e))
        finally:
            self.is_running = False

        duration = (datetime.now(UTC) - start_time).total_seconds()
        logger.info("Match processing job completed", duration_seconds=duration, result=result)

        return result


async def start_match_processing_scheduler(job: MatchProcessingJob | None = None) -> None:
    """
    Sleep until each scheduled reveal time, then process.

    Runs until cancelled.
    """
    job = job or match_processing_job

    logger.info("Match processing scheduler STARTED")

    while True:
        try:
            now = datetime.now(UTC)
            next_run = job.scheduler.next_run(now)
            sleep_seconds = (next_run - now).total_seconds()

            logger.info(
                "Match processing scheduled",
                next_run=next_run.isoformat(),
                sleep_seconds=sleep_seconds,
            )

            await asyncio.sleep(sleep_seconds)

            await job.run_once(now=max(datetime.now(UTC), next_run))

        except asyncio.CancelledError:
            logger.info("Match processing scheduler cancelled")
            break
        except Exception as e:
            logger.error(
                "Error in match processing scheduler, will retry",
                error=str(e),
                error_type=type(e).__name__,
            )
            await asyncio.sleep(ERROR_RETRY_SECONDS)


async def run_match_processing_worker() -> None:
    """Worker entry point: own the database pool and run the scheduler loop."""
    await db_pool.initialize()
    try:
        await start_match_processing_scheduler()
    finally:
        await db_pool.close()


async def run_match_processing_once() -> None:
    """Worker entry point for a single run (cron)."""
    await db_pool.initialize()
    try:
        result = await match_processing_job.run_once()
        if not result["success"]:
            raise RuntimeError(f"Match processing failed: {result.get('errors')}")
    finally:
        await db_pool.close()


# Singleton instance for manual triggers
match_processing_job = MatchProcessingJob()
