"""Feed route handlers."""

import logging

from fastapi import APIRouter, Depends, status

from aggregator.application import get_store
from aggregator.auth import get_current_user
from aggregator.schemas import Feed, FeedCreate, FeedCreated, User
from aggregator.store import Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/feeds", tags=["feeds"])


@router.get("", response_model=list[Feed])
async def list_feeds(store: Store = Depends(get_store)) -> list[Feed]:
    """Return all registered feeds."""
    return await store.list_feeds()


@router.post("", response_model=FeedCreated, status_code=status.HTTP_201_CREATED)
async def create_feed(
    body: FeedCreate,
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> FeedCreated:
    """Register a new RSS feed and follow it on behalf of its creator.

    Args:
        body: Feed name and URL.
    """
    feed = await store.create_feed(body.name, body.url, user.id)
    feed_follow = await store.create_feed_follow(user.id, feed.id)
    logger.info("User %s created feed %s (%s)", user.id, feed.id, feed.url)
    return FeedCreated(feed=feed, feed_follow=feed_follow)
