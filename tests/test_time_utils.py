"""pubDate parsing and formatting tests."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from aggregator.time_utils import (
    InvalidPubDateError,
    format_pub_date,
    parse_pub_date,
    utc_now,
)


def test_parse_pub_date_utc() -> None:
    result = parse_pub_date("Fri, 26 Jul 2024 00:00:00 +0000")
    assert result == datetime(2024, 7, 26, tzinfo=UTC)
    assert result.utcoffset() == timedelta(0)


def test_parse_pub_date_keeps_numeric_offset() -> None:
    result = parse_pub_date("Mon, 02 Jan 2006 15:04:05 -0700")
    assert result.utcoffset() == timedelta(hours=-7)
    assert result.astimezone(UTC) == datetime(2006, 1, 2, 22, 4, 5, tzinfo=UTC)


def test_parse_pub_date_strips_whitespace() -> None:
    assert parse_pub_date("  Fri, 26 Jul 2024 00:00:00 +0000\n") == datetime(
        2024, 7, 26, tzinfo=UTC
    )


@pytest.mark.parametrize(
    "value",
    [
        "invalid date",
        "",
        "2024-07-26T00:00:00Z",
        "Fri, 26 Jul 2024 00:00:00 GMT",
        "Fri, 26 Jul 2024",
        "Fri, 26 Jul 2024 00:00:00 Z",
        "Fri, 26 Jul 2024 00:00:00 +00:00",
        "Fri, 6 Jul 2024 00:00:00 +0000",
    ],
)
def test_parse_pub_date_rejects(value: str) -> None:
    with pytest.raises(InvalidPubDateError):
        parse_pub_date(value)


def test_invalid_pub_date_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_pub_date("invalid date")


@pytest.mark.parametrize(
    "moment",
    [
        datetime(2024, 7, 26, tzinfo=UTC),
        datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone(timedelta(hours=5, minutes=30))),
        datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone(timedelta(hours=-7))),
    ],
)
def test_format_then_parse_returns_same_instant(moment: datetime) -> None:
    assert parse_pub_date(format_pub_date(moment)) == moment


def test_format_pub_date_layout() -> None:
    moment = datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone(timedelta(hours=-7)))
    assert format_pub_date(moment) == "Mon, 02 Jan 2006 15:04:05 -0700"


def test_format_pub_date_treats_naive_as_utc() -> None:
    assert format_pub_date(datetime(2024, 7, 26)) == "Fri, 26 Jul 2024 00:00:00 +0000"


def test_utc_now_is_aware() -> None:
    assert utc_now().tzinfo is UTC
