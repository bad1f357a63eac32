"""Feed follow route handlers."""

import logging

from fastapi import APIRouter, Depends, status

from aggregator.application import get_store
from aggregator.auth import get_current_user
from aggregator.schemas import FeedFollow, FeedFollowCreate, User
from aggregator.store import Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/feed_follows", tags=["feed_follows"])


@router.get("", response_model=list[FeedFollow])
async def list_feed_follows(
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> list[FeedFollow]:
    """Return the caller's follows."""
    return await store.list_feed_follows(user.id)


@router.post("", response_model=FeedFollow, status_code=status.HTTP_201_CREATED)
async def create_feed_follow(
    body: FeedFollowCreate,
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> FeedFollow:
    """Follow an existing feed.

    Unknown feeds surface as 404 and repeated follows as 409 through the
    store error handlers.
    """
    return await store.create_feed_follow(user.id, body.feed_id)


@router.delete("/{feed_follow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feed_follow(
    feed_follow_id: str,
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> None:
    """Unfollow. Only the caller's own follows can be deleted."""
    await store.delete_feed_follow(feed_follow_id, user.id)
    logger.info("User %s removed follow %s", user.id, feed_follow_id)
