"""In-memory stand-ins for the store, clock and fetcher."""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime, timedelta
from xml.sax.saxutils import escape

from aggregator.schemas import Feed, FeedFollow, Post, PostCreate, User
from aggregator.services.fetcher import FetchError
from aggregator.store import (
    ConflictError,
    InsertResult,
    NotFoundError,
    StoreError,
    _due_order,
    generate_api_key,
)


class FakeClock:
    """Settable clock for deterministic timestamps."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 7, 26, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class InMemoryStore:
    """Store implementation over dicts, enforcing the same unique keys."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock()
        self.users: dict[str, User] = {}
        self.feeds: dict[str, Feed] = {}
        self.follows: dict[str, FeedFollow] = {}
        self.posts: list[Post] = []
        self.fail_claims = False
        self.fail_post_urls: set[str] = set()
        self.claim_calls = 0

    # --- seeding helpers ---

    def add_user(self, name: str = "alice", api_key: str | None = None) -> User:
        now = self.clock()
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            api_key=api_key or generate_api_key(),
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        return user

    def add_feed(
        self,
        url: str,
        *,
        feed_id: str | None = None,
        user_id: str = "owner",
        last_fetched_at: datetime | None = None,
        name: str = "Feed",
    ) -> Feed:
        now = self.clock()
        feed = Feed(
            id=feed_id or str(uuid.uuid4()),
            name=name,
            url=url,
            user_id=user_id,
            created_at=now,
            updated_at=now,
            last_fetched_at=last_fetched_at,
        )
        self.feeds[feed.id] = feed
        return feed

    def posts_for(self, feed_id: str) -> list[Post]:
        return [p for p in self.posts if p.feed_id == feed_id]

    # --- pipeline ---

    async def claim_due_feeds(self, limit: int) -> list[Feed]:
        self.claim_calls += 1
        if self.fail_claims:
            raise StoreError("connection refused")
        due = sorted(self.feeds.values(), key=_due_order)
        return [feed.model_copy() for feed in due[:limit]]

    async def mark_feed_fetched(self, feed_id: str, fetched_at: datetime) -> None:
        feed = self.feeds[feed_id]
        self.feeds[feed_id] = feed.model_copy(
            update={"last_fetched_at": fetched_at, "updated_at": fetched_at}
        )

    async def create_post(self, post: PostCreate) -> InsertResult:
        if post.url in self.fail_post_urls:
            raise StoreError("write timeout")
        if any(p.feed_id == post.feed_id and p.url == post.url for p in self.posts):
            return "duplicate"
        now = self.clock()
        self.posts.append(
            Post(id=str(uuid.uuid4()), created_at=now, updated_at=now, **post.model_dump())
        )
        return "inserted"

    async def get_posts_by_user(self, user_id: str, limit: int) -> list[Post]:
        followed = {f.feed_id for f in self.follows.values() if f.user_id == user_id}
        posts = [p for p in self.posts if p.feed_id in followed]
        posts.sort(key=lambda p: p.published_at, reverse=True)
        return posts[:limit]

    # --- API ---

    async def create_user(self, name: str) -> User:
        return self.add_user(name)

    async def get_user_by_api_key(self, api_key: str) -> User | None:
        return next((u for u in self.users.values() if u.api_key == api_key), None)

    async def create_feed(self, name: str, url: str, user_id: str) -> Feed:
        if any(f.url == url for f in self.feeds.values()):
            raise ConflictError("duplicate key value violates unique constraint")
        return self.add_feed(url, user_id=user_id, name=name)

    async def list_feeds(self) -> list[Feed]:
        return list(self.feeds.values())

    async def create_feed_follow(self, user_id: str, feed_id: str) -> FeedFollow:
        if feed_id not in self.feeds:
            raise NotFoundError("Feed not found")
        if any(f.user_id == user_id and f.feed_id == feed_id for f in self.follows.values()):
            raise ConflictError("Already following this feed")
        now = self.clock()
        follow = FeedFollow(
            id=str(uuid.uuid4()),
            user_id=user_id,
            feed_id=feed_id,
            created_at=now,
            updated_at=now,
        )
        self.follows[follow.id] = follow
        return follow

    async def delete_feed_follow(self, follow_id: str, user_id: str) -> FeedFollow:
        follow = self.follows.get(follow_id)
        if follow is None or follow.user_id != user_id:
            raise NotFoundError("Feed follow not found")
        return self.follows.pop(follow_id)

    async def list_feed_follows(self, user_id: str) -> list[FeedFollow]:
        return [f for f in self.follows.values() if f.user_id == user_id]


class StubFetcher:
    """Returns canned payloads or raises canned errors per URL."""

    def __init__(
        self,
        responses: dict[str, bytes | Exception] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get(self, url: str) -> bytes:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses.get(url)
            if response is None:
                raise FetchError(url, "network error: connection refused")
            if isinstance(response, Exception):
                raise response
            return response
        finally:
            self.in_flight -= 1


def rss_item(
    index: int,
    *,
    link: str | None = None,
    pub_date: str = "Fri, 26 Jul 2024 00:00:00 +0000",
) -> dict[str, str]:
    """Build a well-formed item dict for render_rss."""
    return {
        "title": f"Post {index}",
        "link": link or f"https://blog.boot.dev/posts/{index}/",
        "description": f"Description {index}",
        "guid": link or f"https://blog.boot.dev/posts/{index}/",
        "pub_date": pub_date,
    }


def render_rss(
    items: list[dict[str, str]],
    *,
    title: str = "Boot.dev Blog",
    link: str = "https://blog.boot.dev/",
    description: str = "Recent content on Boot.dev Blog",
) -> bytes:
    """Serialize a channel and its items as an RSS 2.0 document."""
    parts = [
        '<?xml version="1.0" encoding="utf-8"?>',
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
        "<channel>",
        f"<title>{escape(title)}</title>",
        f"<link>{escape(link)}</link>",
        f"<description>{escape(description)}</description>",
        "<generator>Hugo</generator>",
    ]
    for item in items:
        parts.append("<item>")
        parts.append(f"<title>{escape(item['title'])}</title>")
        parts.append(f"<link>{escape(item['link'])}</link>")
        parts.append(f"<pubDate>{escape(item['pub_date'])}</pubDate>")
        parts.append(f"<guid>{escape(item['guid'])}</guid>")
        parts.append(f"<description>{escape(item['description'])}</description>")
        parts.append("</item>")
    parts.extend(["</channel>", "</rss>"])
    return "\n".join(parts).encode("utf-8")
