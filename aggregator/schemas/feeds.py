"""Feed schemas."""

from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from aggregator.schemas.feed_follows import FeedFollow


class FeedCreate(BaseModel):
    """Request body for creating a new feed."""

    name: str = Field(min_length=1)
    url: str

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid URL format")
        return value


class Feed(BaseModel):
    """Subscribable RSS source."""

    id: str
    name: str
    url: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    last_fetched_at: datetime | None = None


class FeedCreated(BaseModel):
    """Response for feed creation: the feed plus the owner's follow."""

    feed: Feed
    feed_follow: FeedFollow
