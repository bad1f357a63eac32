"""Post schemas."""

from datetime import datetime

from pydantic import BaseModel


class PostCreate(BaseModel):
    """Post values produced by the ingestor."""

    feed_id: str
    title: str
    url: str
    description: str
    published_at: datetime


class Post(BaseModel):
    """Post returned by the API."""

    id: str
    feed_id: str
    title: str
    url: str
    description: str
    published_at: datetime
    created_at: datetime
    updated_at: datetime
