"""Post route handlers."""

from fastapi import APIRouter, Depends, Query

from aggregator.application import get_store
from aggregator.auth import get_current_user
from aggregator.config import get_settings
from aggregator.schemas import Post, User
from aggregator.store import Store

router = APIRouter(prefix="/v1/posts", tags=["posts"])


@router.get("", response_model=list[Post])
async def list_posts(
    limit: int | None = Query(default=None, ge=1, le=100),
    user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> list[Post]:
    """Return the newest posts from feeds the caller follows."""
    if limit is None:
        limit = get_settings().posts.default_limit
    return await store.get_posts_by_user(user.id, limit)
