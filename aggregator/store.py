"""Persistence layer for users, feeds, follows and posts.

The core pipeline depends only on the ``Store`` protocol. ``SupabaseStore``
implements it over PostgREST; the synchronous Supabase client is driven from
worker threads so concurrent feed workers do not block the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any, Literal, Protocol, TypeVar, cast

from postgrest.exceptions import APIError
from supabase import Client

from aggregator.schemas import Feed, FeedFollow, Post, PostCreate, User
from aggregator.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

InsertResult = Literal["inserted", "duplicate"]

_T = TypeVar("_T")

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


class StoreError(Exception):
    """Raised when a store operation fails."""


class ConflictError(StoreError):
    """Raised when a write violates a uniqueness constraint."""


class NotFoundError(StoreError):
    """Raised when a referenced row does not exist."""


class Store(Protocol):
    """Operations the pipeline and the API consume."""

    async def claim_due_feeds(self, limit: int) -> list[Feed]:
        """Return up to ``limit`` feeds, oldest ``last_fetched_at`` first, nulls first."""
        ...

    async def mark_feed_fetched(self, feed_id: str, fetched_at: datetime) -> None:
        """Set ``last_fetched_at`` and ``updated_at`` to ``fetched_at``."""
        ...

    async def create_post(self, post: PostCreate) -> InsertResult:
        """Insert a post; a repeated ``(feed_id, url)`` is reported as duplicate."""
        ...

    async def get_posts_by_user(self, user_id: str, limit: int) -> list[Post]:
        """Return the newest posts from feeds the user follows."""
        ...

    async def create_user(self, name: str) -> User: ...

    async def get_user_by_api_key(self, api_key: str) -> User | None: ...

    async def create_feed(self, name: str, url: str, user_id: str) -> Feed: ...

    async def list_feeds(self) -> list[Feed]: ...

    async def create_feed_follow(self, user_id: str, feed_id: str) -> FeedFollow: ...

    async def delete_feed_follow(self, follow_id: str, user_id: str) -> FeedFollow: ...

    async def list_feed_follows(self, user_id: str) -> list[FeedFollow]: ...


def generate_api_key() -> str:
    """Return a new 64 character hex API key."""
    return secrets.token_hex(32)


def _due_order(feed: Feed) -> tuple[bool, float]:
    """Sort key: never-fetched feeds first, then oldest last_fetched_at."""
    if feed.last_fetched_at is None:
        return (False, 0.0)
    return (True, feed.last_fetched_at.timestamp())


def _translate(exc: APIError) -> StoreError:
    """Map a PostgREST error onto the store error hierarchy."""
    message = exc.message or str(exc)
    if exc.code == _UNIQUE_VIOLATION:
        return ConflictError(message)
    if exc.code == _FOREIGN_KEY_VIOLATION:
        return NotFoundError(message)
    return StoreError(message)


class SupabaseStore:
    """``Store`` backed by Supabase tables and the ``claim_due_feeds`` RPC."""

    def __init__(
        self,
        client: Client,
        *,
        claim_lease_seconds: int = 45,
        clock: Clock = utc_now,
    ) -> None:
        self._client = client
        self._claim_lease_seconds = claim_lease_seconds
        self._clock = clock

    async def _run(self, call: Callable[[], _T]) -> _T:
        try:
            return await asyncio.to_thread(call)
        except APIError as exc:
            raise _translate(exc) from exc

    # --- pipeline ---

    async def claim_due_feeds(self, limit: int) -> list[Feed]:
        """Claim due feeds through the skip-locked RPC.

        Args:
            limit: Maximum number of feeds to claim.

        Returns:
            Claimed feeds ordered by last_fetched_at ascending, nulls first.
        """
        response = await self._run(
            lambda: self._client.rpc(
                "claim_due_feeds",
                {"batch_size": limit, "lease_seconds": self._claim_lease_seconds},
            ).execute()
        )
        rows = cast(list[dict[str, Any]], response.data or [])
        feeds = [Feed.model_validate(row) for row in rows]
        # UPDATE ... RETURNING does not keep the claim order
        feeds.sort(key=_due_order)
        return feeds

    async def mark_feed_fetched(self, feed_id: str, fetched_at: datetime) -> None:
        stamp = fetched_at.isoformat()
        await self._run(
            lambda: self._client.table("feeds")
            .update({"last_fetched_at": stamp, "updated_at": stamp})
            .eq("id", feed_id)
            .execute()
        )

    async def create_post(self, post: PostCreate) -> InsertResult:
        """Insert a post, ignoring a conflict on (feed_id, url).

        Returns:
            "inserted" when a row was written, "duplicate" when the conflict
            target already existed.
        """
        now = self._clock().isoformat()
        row = {
            "id": str(uuid.uuid4()),
            "feed_id": post.feed_id,
            "title": post.title,
            "url": post.url,
            "description": post.description,
            "published_at": post.published_at.isoformat(),
            "created_at": now,
            "updated_at": now,
        }
        response = await self._run(
            lambda: self._client.table("posts")
            .upsert(row, on_conflict="feed_id,url", ignore_duplicates=True)
            .execute()
        )
        return "inserted" if response.data else "duplicate"

    async def get_posts_by_user(self, user_id: str, limit: int) -> list[Post]:
        follows = await self._run(
            lambda: self._client.table("feed_follows")
            .select("feed_id")
            .eq("user_id", user_id)
            .execute()
        )
        feed_ids = [row["feed_id"] for row in cast(list[dict[str, Any]], follows.data)]
        if not feed_ids:
            return []

        response = await self._run(
            lambda: self._client.table("posts")
            .select("*")
            .in_("feed_id", feed_ids)
            .order("published_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [Post.model_validate(row) for row in cast(list[dict[str, Any]], response.data)]

    # --- API ---

    async def create_user(self, name: str) -> User:
        now = self._clock().isoformat()
        row = {
            "id": str(uuid.uuid4()),
            "name": name,
            "api_key": generate_api_key(),
            "created_at": now,
            "updated_at": now,
        }
        response = await self._run(lambda: self._client.table("users").insert(row).execute())
        return User.model_validate(response.data[0])

    async def get_user_by_api_key(self, api_key: str) -> User | None:
        response = await self._run(
            lambda: self._client.table("users").select("*").eq("api_key", api_key).execute()
        )
        rows = cast(list[dict[str, Any]], response.data)
        return User.model_validate(rows[0]) if rows else None

    async def create_feed(self, name: str, url: str, user_id: str) -> Feed:
        now = self._clock().isoformat()
        row = {
            "id": str(uuid.uuid4()),
            "name": name,
            "url": url,
            "user_id": user_id,
            "created_at": now,
            "updated_at": now,
        }
        response = await self._run(lambda: self._client.table("feeds").insert(row).execute())
        return Feed.model_validate(response.data[0])

    async def list_feeds(self) -> list[Feed]:
        response = await self._run(
            lambda: self._client.table("feeds").select("*").order("created_at", desc=True).execute()
        )
        return [Feed.model_validate(row) for row in cast(list[dict[str, Any]], response.data)]

    async def create_feed_follow(self, user_id: str, feed_id: str) -> FeedFollow:
        now = self._clock().isoformat()
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "feed_id": feed_id,
            "created_at": now,
            "updated_at": now,
        }
        response = await self._run(
            lambda: self._client.table("feed_follows").insert(row).execute()
        )
        return FeedFollow.model_validate(response.data[0])

    async def delete_feed_follow(self, follow_id: str, user_id: str) -> FeedFollow:
        """Delete one of the user's follows.

        Raises:
            NotFoundError: If the follow does not exist or belongs to someone else.
        """
        response = await self._run(
            lambda: self._client.table("feed_follows")
            .delete()
            .eq("id", follow_id)
            .eq("user_id", user_id)
            .execute()
        )
        rows = cast(list[dict[str, Any]], response.data)
        if not rows:
            raise NotFoundError("Feed follow not found")
        return FeedFollow.model_validate(rows[0])

    async def list_feed_follows(self, user_id: str) -> list[FeedFollow]:
        response = await self._run(
            lambda: self._client.table("feed_follows")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [
            FeedFollow.model_validate(row) for row in cast(list[dict[str, Any]], response.data)
        ]
