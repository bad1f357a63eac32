"""RSS 2.0 document parser.

Decodes a fetched payload with feedparser into a plain channel/item
structure. Unknown elements are ignored and missing optional fields default
to empty strings; pubDate is kept as raw text and parsed by the ingestor.
Documents that are not well-formed XML are rejected outright.
"""

from __future__ import annotations

import logging
from typing import TypedDict
from xml.sax import SAXException

import feedparser

logger = logging.getLogger(__name__)


class FeedParseError(Exception):
    """Raised when a payload is not a readable feed document."""


class FeedItem(TypedDict):
    """One <item> of a channel."""

    title: str
    link: str
    description: str
    guid: str
    pub_date: str


class Channel(TypedDict):
    """The <channel> of an RSS document."""

    title: str
    link: str
    description: str
    items: list[FeedItem]


def decode(payload: bytes) -> Channel:
    """Parse an RSS payload.

    Item text is returned as published: HTML in descriptions is neither
    sanitized nor rewritten.

    Args:
        payload: Raw response body.

    Returns:
        Channel metadata and its items in document order.

    Raises:
        FeedParseError: If the payload is not well-formed XML (even when
            feedparser recovered some entries), or is well-formed XML that
            is not a feed.
    """
    parsed = feedparser.parse(payload, sanitize_html=False, resolve_relative_uris=False)
    error = parsed.get("bozo_exception")
    if parsed.bozo and isinstance(error, SAXException):
        raise FeedParseError(f"malformed XML: {error}")
    if not parsed.entries and (parsed.bozo or not parsed.version):
        raise FeedParseError(str(error or "not a feed document"))
    if parsed.bozo:
        # encoding overrides and content-type mismatches on otherwise valid XML
        logger.debug("Accepted feed with warning: %s", error)

    feed = parsed.feed
    return Channel(
        title=feed.get("title", ""),
        link=feed.get("link", ""),
        description=feed.get("subtitle", ""),
        items=[_entry_to_item(entry) for entry in parsed.entries],
    )


def _entry_to_item(entry: feedparser.FeedParserDict) -> FeedItem:
    """Convert a feedparser entry to a FeedItem."""
    return FeedItem(
        title=entry.get("title", ""),
        link=entry.get("link", ""),
        description=entry.get("summary", ""),
        guid=entry.get("id", ""),
        pub_date=entry.get("published", ""),
    )
