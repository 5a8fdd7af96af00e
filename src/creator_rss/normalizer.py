"""Date and URL helpers shared by the source adapters.

Sources report dates in different shapes: full timestamps (Patreon, YouTube),
calendar dates, or month-day fragments without a year (Bilibili cards for the
current year). Everything is resolved to a timezone-aware UTC instant so the
serializer never has to guess.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import urljoin, urlsplit, urlunsplit

from dateutil import parser as date_parser

from creator_rss.errors import MalformedField

LOGGER = logging.getLogger(__name__)

_FULL_DATE_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})$")
_FRAGMENT_RE = re.compile(r"^(?P<month>\d{1,2})-(?P<day>\d{1,2})$")
# Two defaults that differ in every date field; a part dateutil filled in shows up as a mismatch.
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def resolve_partial_date(text: str | None, now: datetime | None = None) -> datetime:
    """Resolve ``YYYY-MM-DD`` or ``MM-DD`` text to midnight UTC.

    Fragments take the year of ``now``; a fragment whose month lies after the
    current month belongs to the previous year (a "12-30" card seen in
    January). Anything else resolves to January 1 of the current year.
    """
    reference = _reference(now)
    cleaned = (text or "").strip()

    match = _FULL_DATE_RE.match(cleaned)
    if match:
        year = int(match.group("year"))
        month = int(match.group("month"))
        day = int(match.group("day"))
        return _date_or_fallback(year, month, day, cleaned, reference)

    match = _FRAGMENT_RE.match(cleaned)
    if match:
        month = int(match.group("month"))
        day = int(match.group("day"))
        year = reference.year
        if month > reference.month:
            year -= 1
        return _date_or_fallback(year, month, day, cleaned, reference)

    LOGGER.debug("Unrecognized date %r; using January 1", cleaned)
    return fallback_date(reference)


def fallback_date(now: datetime | None = None) -> datetime:
    reference = _reference(now)
    return datetime(reference.year, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(text: str | None) -> datetime:
    """Parse a full timestamp, treating naive values as UTC.

    Text without a complete calendar date ("12", "10:00") is rejected instead
    of being completed from today's date.
    """
    if not text or not text.strip():
        raise MalformedField("published_at", text)
    try:
        parsed = date_parser.parse(text.strip(), default=_FILL_DEFAULTS[0])
        other = date_parser.parse(text.strip(), default=_FILL_DEFAULTS[1])
    except (ValueError, OverflowError, TypeError) as exc:
        raise MalformedField("published_at", text) from exc
    if parsed.date() != other.date():
        raise MalformedField("published_at", text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_timestamp(text: str | None, now: datetime | None = None) -> datetime:
    try:
        return parse_timestamp(text)
    except MalformedField as exc:
        LOGGER.warning("%s; falling back to January 1", exc)
        return fallback_date(now)


def format_rfc2822(value: datetime) -> str:
    """Render ``value`` the way RSS readers expect ``pubDate`` (always GMT)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def repair_url(url: str | None) -> str:
    """Rewrite protocol-relative ``//host/path`` URLs to https."""
    if not url:
        return ""
    trimmed = url.strip()
    if trimmed.startswith("//"):
        return "https:" + trimmed
    return trimmed


def absolute_url(url: str | None, *, base: str | None = None) -> str:
    repaired = repair_url(url)
    if repaired and base and not urlsplit(repaired).scheme:
        return urljoin(base, repaired)
    return repaired


def canonical_url(url: str | None, *, base: str | None = None) -> str:
    """Repair, absolutize against ``base``, and drop query string and fragment."""
    absolute = absolute_url(url, base=base)
    if not absolute:
        return ""
    parts = urlsplit(absolute)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _reference(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _date_or_fallback(year: int, month: int, day: int, text: str, reference: datetime) -> datetime:
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        LOGGER.warning("%s; falling back to January 1", MalformedField("published_at", text))
        return fallback_date(reference)
