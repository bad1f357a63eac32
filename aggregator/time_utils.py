"""Clock and RSS publication date helpers."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, datetime

# RFC 1123 with a numeric zone, e.g. "Mon, 02 Jan 2006 15:04:05 -0700"
PUB_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"

# strptime also takes one-digit days, "Z" and "+00:00"; the layout does not.
_PUB_DATE_SHAPE = re.compile(
    r"[A-Z][a-z]{2}, \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} [+-]\d{4}"
)

Clock = Callable[[], datetime]


class InvalidPubDateError(ValueError):
    """Raised when an item's pubDate does not match PUB_DATE_FORMAT."""


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)


def parse_pub_date(value: str) -> datetime:
    """Parse an RSS pubDate into a timezone-aware datetime.

    Args:
        value: Raw pubDate text, e.g. "Fri, 26 Jul 2024 00:00:00 +0000".

    Returns:
        The parsed datetime, carrying the offset found in the string.

    Raises:
        InvalidPubDateError: If the value is empty or not RFC 1123 with a
            two-digit day and a four-digit numeric zone.
    """
    text = (value or "").strip()
    if not text:
        raise InvalidPubDateError("empty pubDate")
    if not _PUB_DATE_SHAPE.fullmatch(text):
        raise InvalidPubDateError(f"unparseable pubDate {value!r}")
    try:
        return datetime.strptime(text, PUB_DATE_FORMAT)
    except ValueError as exc:
        raise InvalidPubDateError(f"unparseable pubDate {value!r}") from exc


def format_pub_date(moment: datetime) -> str:
    """Render a datetime in the pubDate format. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.strftime(PUB_DATE_FORMAT)
