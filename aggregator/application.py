"""Process-wide application handles.

Created once in the FastAPI lifespan and stored on ``app.state``; routers
reach the store through the ``get_store`` dependency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from aggregator.config import Settings
from aggregator.services.feed_scheduler import FeedScheduler
from aggregator.services.fetcher import FeedFetcher, build_http_client
from aggregator.store import Store, SupabaseStore
from aggregator.supabase_client import create_supabase_client

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Shared store, HTTP client and feed scheduler."""

    settings: Settings
    store: Store
    http_client: httpx.AsyncClient
    feed_scheduler: FeedScheduler

    async def aclose(self) -> None:
        """Drain the feed scheduler, then release the HTTP client."""
        await self.feed_scheduler.shutdown()
        await self.http_client.aclose()


def build_application(settings: Settings) -> Application:
    """Wire the store, fetcher and feed scheduler from settings."""
    store = SupabaseStore(
        create_supabase_client(settings),
        claim_lease_seconds=settings.scheduler.claim_lease_seconds,
    )
    http_client = build_http_client(settings.fetcher)
    feed_scheduler = FeedScheduler(
        store,
        FeedFetcher(http_client),
        batch_size=settings.scheduler.batch_size,
    )
    return Application(
        settings=settings,
        store=store,
        http_client=http_client,
        feed_scheduler=feed_scheduler,
    )


def get_store(request: Request) -> Store:
    """FastAPI dependency returning the shared store."""
    application: Application = request.app.state.application
    return application.store
