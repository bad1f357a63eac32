"""Pydantic request/response schemas for all entities."""

from aggregator.schemas.feed_follows import (
    FeedFollow,
    FeedFollowCreate,
)
from aggregator.schemas.feeds import (
    Feed,
    FeedCreate,
    FeedCreated,
)
from aggregator.schemas.posts import (
    Post,
    PostCreate,
)
from aggregator.schemas.users import (
    User,
    UserCreate,
)

__all__ = [
    "Feed",
    "FeedCreate",
    "FeedCreated",
    "FeedFollow",
    "FeedFollowCreate",
    "Post",
    "PostCreate",
    "User",
    "UserCreate",
]
