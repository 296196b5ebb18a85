"""
News Feed Normalizer

Transforms the raw items returned by the fetch adapter into a canonical,
deduplicated and capped per-symbol feed of NewsItem.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional

from newsdesk.models.news import NewsItem, RawItem
from newsdesk.sentiment import classify

logger = logging.getLogger(__name__)

# Maximum items kept per symbol feed
MAX_FEED_ITEMS = 10

# Source label used when the feed entry names none
FALLBACK_SOURCE = "Google News"


def parse_timestamp(ts: Optional[str]) -> Optional[datetime]:
    """
    Parse an RSS (RFC 822) or ISO 8601 timestamp to an aware UTC datetime.

    Args:
        ts: Timestamp string, e.g. "Mon, 20 Oct 2025 08:15:00 GMT"
            or "2025-10-20T08:15:00Z"

    Returns:
        Timezone-aware datetime, or None when missing or unparseable
    """
    if not ts:
        return None

    ts = ts.strip()
    dt: Optional[datetime] = None

    try:
        dt = parsedate_to_datetime(ts)
    except (TypeError, ValueError, IndexError):
        dt = None

    if dt is None:
        iso = ts[:-1] + "+00:00" if ts.endswith("Z") else ts
        try:
            dt = datetime.fromisoformat(iso)
        except ValueError:
            logger.debug(f"Unparseable timestamp dropped: {ts!r}")
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_news_item(raw: RawItem) -> NewsItem:
    """Build a NewsItem from one raw entry, classifying its headline."""
    title = (raw.title or "").strip()
    source = (raw.source or "").strip() or FALLBACK_SOURCE
    return NewsItem(
        title=title,
        source=source,
        url=(raw.url or "").strip(),
        published_at=parse_timestamp(raw.published),
        impact=classify(title),
    )


def dedupe(items: Iterable[NewsItem], limit: int = MAX_FEED_ITEMS) -> tuple[NewsItem, ...]:
    """
    Keep the first occurrence of each (title, source) pair, in input order,
    then truncate to ``limit`` items.
    """
    seen: set[tuple[str, str]] = set()
    out: list[NewsItem] = []
    for item in items:
        if item.identity in seen:
            continue
        seen.add(item.identity)
        out.append(item)
    return tuple(out[:limit])


def normalize(raw_items: Iterable[RawItem], limit: int = MAX_FEED_ITEMS) -> tuple[NewsItem, ...]:
    """
    Transform a raw fetch result into a symbol feed.

    Output preserves input order, never contains two items with equal
    (title, source), and never exceeds ``limit`` items.
    """
    return dedupe((to_news_item(raw) for raw in raw_items), limit=limit)
