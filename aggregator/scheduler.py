"""APScheduler integration for the feed polling loop.

The interval job only decides *when* to tick; batching, dropping of
overlapping ticks and shutdown live in ``FeedScheduler``. Start and stop
functions are designed to be called from the FastAPI lifespan.
"""

from __future__ import annotations

import logging
from datetime import UTC

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from aggregator.config import SchedulerConfig
from aggregator.services.feed_scheduler import FeedScheduler

logger = logging.getLogger(__name__)

POLL_JOB_ID = "poll_feeds"


def start_scheduler(
    feed_scheduler: FeedScheduler, config: SchedulerConfig
) -> AsyncIOScheduler:
    """Start the APScheduler with the feed polling job.

    The first tick fires one interval after start. Fires that land while a
    batch is still running are skipped by ``max_instances=1``.

    Returns:
        The running scheduler instance.
    """
    scheduler = AsyncIOScheduler(timezone=UTC)
    scheduler.add_job(
        _run_poll_job,
        trigger="interval",
        seconds=config.interval_seconds,
        args=[scheduler, feed_scheduler, config.interval_seconds],
        id=POLL_JOB_ID,
        name="Poll due RSS feeds",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    logger.info(
        "Scheduled feed polling every %.0fs (batch size %d)",
        config.interval_seconds,
        config.batch_size,
    )

    scheduler.start()
    logger.info("Scheduler started")
    return scheduler


def stop_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Stop firing new ticks. In-flight batches are drained by FeedScheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


async def _run_poll_job(
    scheduler: AsyncIOScheduler,
    feed_scheduler: FeedScheduler,
    interval_seconds: float,
) -> None:
    """Execute one tick, then push the next fire a full interval out."""
    try:
        await feed_scheduler.tick()
    except Exception:
        logger.exception("Feed polling tick failed")
    finally:
        if scheduler.running and not feed_scheduler.stopping:
            scheduler.reschedule_job(
                POLL_JOB_ID, trigger="interval", seconds=interval_seconds
            )
