"""Post ingestion for a parsed feed.

Items are written one at a time in document order so a repeated link later
in the same document is seen as a duplicate of the earlier one. The feed is
marked fetched once every item has been handled, whatever the per-item
outcomes were.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TypedDict

from aggregator.schemas import Feed, PostCreate
from aggregator.services.parser import Channel
from aggregator.store import Store
from aggregator.time_utils import Clock, InvalidPubDateError, parse_pub_date, utc_now

logger = logging.getLogger(__name__)


class IngestReport(TypedDict):
    """Per-feed ingestion counts."""

    inserted: int
    duplicate: int
    skipped: int
    errored: int
    fetched_at: datetime


async def apply(
    store: Store,
    feed: Feed,
    channel: Channel,
    *,
    clock: Clock = utc_now,
) -> IngestReport:
    """Store the channel's items as posts and mark the feed fetched.

    Items whose pubDate does not parse, or that have no link, are skipped.
    Store failures on a single item are counted and do not stop the feed.

    Args:
        store: Store to write to.
        feed: Feed the channel was fetched from.
        channel: Decoded channel.
        clock: Source of the fetched-at timestamp.

    Returns:
        Counts of inserted, duplicate, skipped and errored items.
    """
    inserted = duplicate = skipped = errored = 0

    for item in channel["items"]:
        if not item["link"]:
            skipped += 1
            logger.debug("Skipping item without link in feed %s", feed.id)
            continue
        try:
            published_at = parse_pub_date(item["pub_date"])
        except InvalidPubDateError as exc:
            skipped += 1
            logger.debug("Skipping %s in feed %s: %s", item["link"], feed.id, exc)
            continue

        post = PostCreate(
            feed_id=feed.id,
            title=item["title"],
            url=item["link"],
            description=item["description"],
            published_at=published_at,
        )
        try:
            result = await store.create_post(post)
        except Exception as exc:
            errored += 1
            logger.warning(
                "Failed to store post %s for feed %s: %s", post.url, feed.id, exc
            )
            continue

        if result == "inserted":
            inserted += 1
        else:
            duplicate += 1

    fetched_at = clock()
    await store.mark_feed_fetched(feed.id, fetched_at)

    report = IngestReport(
        inserted=inserted,
        duplicate=duplicate,
        skipped=skipped,
        errored=errored,
        fetched_at=fetched_at,
    )
    logger.info(
        "Ingested feed %s '%s': %d new, %d duplicate, %d skipped, %d errored",
        feed.id,
        channel["title"],
        inserted,
        duplicate,
        skipped,
        errored,
    )
    return report
