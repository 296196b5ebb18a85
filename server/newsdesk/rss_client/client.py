"""
Google News RSS Client

Fetch adapter for the per-symbol news search feed. Each call issues one HTTP
GET, decodes the RSS document with feedparser and returns at most the first
``max_items`` entries as RawItem. Any transport, status or decoding problem is
raised as FetchError; the caller decides how to degrade.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp
import feedparser

from newsdesk.config import GOOGLE_NEWS_RSS_URL
from newsdesk.core.types import FetchError
from newsdesk.models.news import RawItem

logger = logging.getLogger(__name__)


def _entry_source(entry: Any) -> Optional[str]:
    """Outlet name from <source>, then dc:creator / author."""
    source = entry.get("source")
    if isinstance(source, dict):
        title = source.get("title")
        if title:
            return str(title)
    author = entry.get("author") or entry.get("dc_creator")
    if author:
        return str(author)
    return None


def entry_to_raw_item(entry: Any) -> RawItem:
    """Convert one feedparser entry to a RawItem."""
    return RawItem(
        title=entry.get("title"),
        source=_entry_source(entry),
        url=entry.get("link"),
        published=entry.get("published") or entry.get("updated"),
    )


def parse_feed(text: str, query: str, max_items: int = 10) -> list[RawItem]:
    """
    Decode an RSS document into raw items.

    Raises:
        FetchError: If the document is not a feed at all
    """
    parsed = feedparser.parse(text)
    entries = getattr(parsed, "entries", None) or []

    if getattr(parsed, "bozo", False) and not entries:
        raise FetchError(
            f"Malformed feed: {getattr(parsed, 'bozo_exception', 'unknown error')}",
            query=query,
        )

    return [entry_to_raw_item(e) for e in entries[:max_items]]


class GoogleNewsClient:
    """
    HTTP client for Google News RSS search.

    Usage:
        async with GoogleNewsClient() as client:
            items = await client.fetch_raw_items("TCS India stock")
    """

    def __init__(
        self,
        base_url: str = GOOGLE_NEWS_RSS_URL,
        *,
        timeout_s: float = 12.0,
        max_items: int = 10,
    ) -> None:
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._max_items = max_items
        self._session: aiohttp.ClientSession | None = None
        self._requests = 0
        self._failures = 0

    async def __aenter__(self) -> GoogleNewsClient:
        await self.open()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def open(self) -> None:
        """Create the underlying HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_s),
            )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch_raw_items(self, query: str) -> list[RawItem]:
        """
        Fetch and decode the news search feed for ``query``.

        Raises:
            FetchError: On timeout, connection failure, non-200 status
                        or an undecodable body
        """
        if self._session is None:
            raise FetchError("GoogleNewsClient is not open; call open() first", query=query)

        self._requests += 1
        try:
            async with self._session.get(self._base_url, params={"q": query}) as resp:
                if resp.status != 200:
                    raise FetchError(
                        f"News feed returned HTTP {resp.status}",
                        query=query,
                        status=resp.status,
                    )
                text = await resp.text()
        except FetchError:
            self._failures += 1
            raise
        except asyncio.TimeoutError as e:
            self._failures += 1
            raise FetchError(
                f"News feed timed out after {self._timeout_s}s",
                query=query,
            ) from e
        except aiohttp.ClientError as e:
            self._failures += 1
            raise FetchError(f"News feed request failed: {e}", query=query) from e

        try:
            items = parse_feed(text, query, self._max_items)
        except FetchError:
            self._failures += 1
            raise

        logger.debug(
            f"Fetched {len(items)} item(s) for '{query}'",
            extra={"query": query, "items": len(items)},
        )
        return items

    def get_stats(self) -> dict[str, Any]:
        """Get request statistics."""
        return {
            "requests": self._requests,
            "failures": self._failures,
        }
