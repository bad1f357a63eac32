"""User route handlers."""

import logging

from fastapi import APIRouter, Depends, status

from aggregator.application import get_store
from aggregator.auth import get_current_user
from aggregator.schemas import User, UserCreate
from aggregator.store import Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, store: Store = Depends(get_store)) -> User:
    """Register a user and return it with its generated API key."""
    user = await store.create_user(body.name)
    logger.info("Created user %s", user.id)
    return user


@router.get("", response_model=User)
async def get_me(user: User = Depends(get_current_user)) -> User:
    """Return the authenticated caller."""
    return user
