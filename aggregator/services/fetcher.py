"""RSS feed fetcher.

Issues a single GET per feed URL and returns the raw body. Retry policy is
left to the scheduler: a failed feed keeps its last_fetched_at and is picked
up again on a later tick.
"""

from __future__ import annotations

import logging

import httpx

from aggregator.config import FetcherConfig

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a feed could not be downloaded."""

    def __init__(self, url: str, reason: str, *, permanent: bool = False) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason
        self.permanent = permanent


class FetchStatusError(FetchError):
    """Raised when the feed URL answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        permanent = 400 <= status_code < 500 and status_code != 429
        super().__init__(url, f"HTTP {status_code}", permanent=permanent)
        self.status_code = status_code


def build_http_client(config: FetcherConfig) -> httpx.AsyncClient:
    """Create the shared async HTTP client used for feed downloads."""
    return httpx.AsyncClient(
        timeout=config.timeout_seconds,
        follow_redirects=True,
        max_redirects=config.max_redirects,
        headers={"User-Agent": config.user_agent},
    )


class FeedFetcher:
    """Downloads feed documents over a shared ``httpx.AsyncClient``."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http_client = http_client

    async def get(self, url: str) -> bytes:
        """Fetch a feed URL.

        Args:
            url: Feed URL.

        Returns:
            Response body bytes of a 2xx answer.

        Raises:
            FetchStatusError: On a non-2xx status.
            FetchError: On timeout, connection failure or too many redirects.
        """
        try:
            resp = await self._http_client.get(url)
        except httpx.TimeoutException as exc:
            raise FetchError(url, "timeout") from exc
        except httpx.TooManyRedirects as exc:
            raise FetchError(url, "too many redirects", permanent=True) from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, f"network error: {exc}") from exc

        if not resp.is_success:
            raise FetchStatusError(url, resp.status_code)

        logger.debug("Fetched %s (%d bytes)", url, len(resp.content))
        return resp.content
