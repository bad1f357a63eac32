"""Single-feed worker: fetch, parse, ingest.

A worker never raises into the batch. Every failure is logged with the feed
id, URL and pipeline phase and reported as an outcome status.
"""

from __future__ import annotations

import logging
from typing import Literal, TypedDict

from aggregator.schemas import Feed
from aggregator.services import ingestor
from aggregator.services.fetcher import FeedFetcher, FetchError
from aggregator.services.ingestor import IngestReport
from aggregator.services.parser import FeedParseError, decode
from aggregator.store import Store
from aggregator.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["ingested", "fetch_failed", "gone", "parse_failed", "crashed"]
Phase = Literal["fetch", "parse", "ingest"]


class FeedOutcome(TypedDict):
    """Result of processing one feed."""

    feed_id: str
    status: OutcomeStatus
    report: IngestReport | None


def _log_failure(level: int, feed: Feed, phase: Phase, error: BaseException) -> None:
    logger.log(
        level,
        "Feed %s (%s) failed during %s: %s",
        feed.id,
        feed.url,
        phase,
        error,
        exc_info=level >= logging.ERROR,
        extra={"feed_id": feed.id, "url": feed.url, "phase": phase, "error": str(error)},
    )


async def process_feed(
    feed: Feed,
    *,
    store: Store,
    fetcher: FeedFetcher,
    clock: Clock = utc_now,
) -> FeedOutcome:
    """Run the fetch -> parse -> ingest pipeline for one feed.

    Transient fetch errors and parse errors leave last_fetched_at unchanged so
    the feed is retried on a later tick. Permanent fetch errors (4xx other
    than 429) mark the feed fetched to keep it from being polled every tick.

    Args:
        feed: Feed to refresh.
        store: Shared store handle.
        fetcher: Shared feed fetcher.
        clock: Source of timestamps.

    Returns:
        The outcome status, with the ingest report when ingestion ran.
    """
    phase: Phase = "fetch"
    try:
        try:
            payload = await fetcher.get(feed.url)
        except FetchError as exc:
            _log_failure(logging.WARNING, feed, phase, exc)
            if not exc.permanent:
                return FeedOutcome(feed_id=feed.id, status="fetch_failed", report=None)
            await store.mark_feed_fetched(feed.id, clock())
            return FeedOutcome(feed_id=feed.id, status="gone", report=None)

        phase = "parse"
        try:
            channel = decode(payload)
        except FeedParseError as exc:
            _log_failure(logging.WARNING, feed, phase, exc)
            return FeedOutcome(feed_id=feed.id, status="parse_failed", report=None)

        phase = "ingest"
        report = await ingestor.apply(store, feed, channel, clock=clock)
        return FeedOutcome(feed_id=feed.id, status="ingested", report=report)
    except Exception as exc:
        _log_failure(logging.ERROR, feed, phase, exc)
        return FeedOutcome(feed_id=feed.id, status="crashed", report=None)
