"""Publish time parsing for feed entries."""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from magnet_watch.core.errors import TimeParseError

RFC1123_NUMERIC_ZONE = "%a, %d %b %Y %H:%M:%S %z"
PLAIN_DATETIME = "%Y-%m-%d %H:%M:%S"

# "Mon, 02 Jan 2006 15:04:05 GMT": weekday, four-digit year and zone name required
RFC1123_NAMED_ZONE = re.compile(r"^[A-Za-z]{3}, \d{1,2} [A-Za-z]{3} \d{4} \d{2}:\d{2}:\d{2} [A-Za-z]+$")


def _rfc1123_numeric(value: str) -> datetime:
    return datetime.strptime(value, RFC1123_NUMERIC_ZONE)


def _rfc1123_named(value: str) -> datetime:
    # Handles GMT/UT/EST-style zone names; unknown names come back as UTC
    if not RFC1123_NAMED_ZONE.match(value):
        raise ValueError(value)
    parsed = parsedate_to_datetime(value)
    if parsed is None:
        raise ValueError(value)
    return parsed


def _iso8601(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError("ISO timestamp without zone offset")
    return parsed


def _plain(value: str) -> datetime:
    return datetime.strptime(value, PLAIN_DATETIME)


_PARSERS = (_rfc1123_numeric, _rfc1123_named, _iso8601, _plain)


def parse_publish_time(value: str) -> datetime:
    """
    Parse a feed publish date.

    Formats are tried in order: RFC 1123 with numeric zone, RFC 1123 with
    named zone, ISO 8601 with offset, "YYYY-MM-DD HH:MM:SS". The first
    successful parse wins. Timestamps without zone information are UTC.

    Raises:
        TimeParseError: if no format matches
    """
    text = (value or "").strip()
    if text:
        for parser in _PARSERS:
            try:
                parsed = parser(text)
            except (TypeError, ValueError, IndexError):
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    raise TimeParseError(value)
