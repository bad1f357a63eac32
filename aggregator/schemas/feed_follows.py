"""Feed follow schemas."""

from datetime import datetime

from pydantic import BaseModel


class FeedFollowCreate(BaseModel):
    """Request body for following a feed."""

    feed_id: str


class FeedFollow(BaseModel):
    """A user's subscription to a feed."""

    id: str
    user_id: str
    feed_id: str
    created_at: datetime
    updated_at: datetime
