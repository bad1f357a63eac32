"""Feed polling scheduler.

Each tick claims a batch of due feeds, runs one worker per feed in parallel
and waits for the whole batch before going idle again. A tick that arrives
while a batch is still running is dropped, never queued.

    IDLE --tick--> CLAIMING --ok--> DISPATCHING --batch done--> IDLE
                      |
                      +--error--> IDLE
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import StrEnum
from typing import TypedDict

from aggregator.schemas import Feed
from aggregator.services.fetcher import FeedFetcher
from aggregator.services.worker import FeedOutcome, process_feed
from aggregator.store import Store
from aggregator.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class SchedulerState(StrEnum):
    """Lifecycle state of a FeedScheduler."""

    IDLE = "idle"
    CLAIMING = "claiming"
    DISPATCHING = "dispatching"


class TickReport(TypedDict):
    """Summary of one completed tick."""

    started_at: datetime
    claimed: int
    ingested: int
    failed: int
    posts_inserted: int
    outcomes: list[FeedOutcome]


class FeedScheduler:
    """Claims due feeds and refreshes them in parallel batches."""

    def __init__(
        self,
        store: Store,
        fetcher: FeedFetcher,
        *,
        batch_size: int = 10,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._batch_size = batch_size
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._stopping = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def stopping(self) -> bool:
        return self._stopping

    async def tick(self) -> TickReport | None:
        """Run one polling iteration.

        Returns:
            The tick report, or None when the tick was dropped (a batch is
            still running, or the scheduler is shutting down) or the claim
            query failed.
        """
        if self._stopping:
            logger.debug("Scheduler is shutting down, ignoring tick")
            return None
        if self._state is not SchedulerState.IDLE:
            logger.warning("Tick dropped: previous batch still %s", self._state)
            return None

        started_at = self._clock()
        self._enter(SchedulerState.CLAIMING)
        try:
            try:
                feeds = await self._store.claim_due_feeds(self._batch_size)
            except Exception:
                logger.exception("Failed to claim due feeds, waiting for next tick")
                return None

            if self._stopping:
                logger.info("Shutdown requested, not dispatching %d claimed feed(s)", len(feeds))
                return None

            self._enter(SchedulerState.DISPATCHING)
            outcomes = await self._dispatch(feeds)
        finally:
            self._enter(SchedulerState.IDLE)

        report = _summarize(started_at, outcomes)
        logger.info(
            "Tick complete: %d claimed, %d ingested, %d failed, %d new post(s)",
            report["claimed"],
            report["ingested"],
            report["failed"],
            report["posts_inserted"],
        )
        return report

    async def shutdown(self) -> None:
        """Stop accepting ticks and wait for the in-flight batch to finish."""
        self._stopping = True
        if not self._idle.is_set():
            logger.info("Waiting for in-flight batch (%s) to finish", self._state)
        await self._idle.wait()
        logger.info("Feed scheduler stopped")

    def _enter(self, state: SchedulerState) -> None:
        self._state = state
        if state is SchedulerState.IDLE:
            self._idle.set()
        else:
            self._idle.clear()

    async def _dispatch(self, feeds: list[Feed]) -> list[FeedOutcome]:
        if not feeds:
            return []
        logger.debug("Dispatching %d feed(s)", len(feeds))
        results = await asyncio.gather(
            *(
                process_feed(feed, store=self._store, fetcher=self._fetcher, clock=self._clock)
                for feed in feeds
            ),
            return_exceptions=True,
        )
        outcomes: list[FeedOutcome] = []
        for feed, result in zip(feeds, results, strict=True):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.error("Worker for feed %s raised: %r", feed.id, result)
                outcomes.append(FeedOutcome(feed_id=feed.id, status="crashed", report=None))
            else:
                outcomes.append(result)
        return outcomes


def _summarize(started_at: datetime, outcomes: list[FeedOutcome]) -> TickReport:
    ingested = [o for o in outcomes if o["status"] == "ingested"]
    return TickReport(
        started_at=started_at,
        claimed=len(outcomes),
        ingested=len(ingested),
        failed=len(outcomes) - len(ingested),
        posts_inserted=sum(o["report"]["inserted"] for o in ingested if o["report"]),
        outcomes=outcomes,
    )
