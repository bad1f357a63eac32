"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Request body for registering a user."""

    name: str = Field(min_length=1)


class User(BaseModel):
    """User row, returned to its owner together with the API key."""

    id: str
    name: str
    api_key: str
    created_at: datetime
    updated_at: datetime
