"""API key authentication dependency."""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, status

from aggregator.application import get_store
from aggregator.schemas import User
from aggregator.store import Store

logger = logging.getLogger(__name__)

_SCHEME = "ApiKey "


async def get_current_user(
    authorization: str | None = Header(default=None),
    store: Store = Depends(get_store),
) -> User:
    """Resolve the caller from an ``Authorization: ApiKey <key>`` header.

    Args:
        authorization: Raw Authorization header.
        store: Store used to look up the key.

    Returns:
        The user owning the key.

    Raises:
        HTTPException: 400 when the header is missing, malformed, or the key
            is unknown.
    """
    if not authorization or not authorization.startswith(_SCHEME):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="no api key",
        )

    api_key = authorization.removeprefix(_SCHEME).strip()
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="no api key",
        )

    user = await store.get_user_by_api_key(api_key)
    if user is None:
        logger.debug("Rejected unknown API key")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid api key",
        )
    return user
