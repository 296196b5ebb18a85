"""
News Refresh Scheduler

Keeps the per-symbol news cache eventually consistent while bounding how
often the upstream source is polled.

A refresh cycle fetches every tracked symbol sequentially, with a fixed
politeness delay between consecutive fetches, normalizes each result and
builds a complete new cache generation. The generation replaces the previous
one in a single assignment, so readers see either the old or the new mapping,
never a mix. A failing symbol gets an empty feed in the new generation and
never aborts the cycle.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Awaitable, Callable, Mapping, Optional, Sequence

from newsdesk.core.types import FetchOutcome
from newsdesk.models.news import NewsItem, RawItem
from newsdesk.rss_client.normalizer import MAX_FEED_ITEMS, normalize

logger = logging.getLogger(__name__)

FetchRawItems = Callable[[str], Awaitable[Sequence[RawItem]]]
Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[object]]

SymbolFeed = tuple[NewsItem, ...]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NewsCache:
    """
    Process-wide news cache state: the current feed generation and the time
    the refresh that produced it started.

    Written only by RefreshScheduler; read by anyone.
    """

    def __init__(self) -> None:
        self._feed: Mapping[str, SymbolFeed] = MappingProxyType({})
        self._refreshed_at: Optional[datetime] = None
        self._generation = 0

    @property
    def feed(self) -> Mapping[str, SymbolFeed]:
        """The current complete generation (read-only view)."""
        return self._feed

    @property
    def refreshed_at(self) -> Optional[datetime]:
        return self._refreshed_at

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, symbol: str) -> SymbolFeed:
        return self._feed.get(symbol, ())

    def is_fresh(self, now: datetime, interval_ms: float) -> bool:
        """True when the last refresh started no more than interval_ms ago."""
        if self._refreshed_at is None:
            return False
        elapsed_ms = (now - self._refreshed_at).total_seconds() * 1000.0
        return elapsed_ms <= interval_ms

    def replace(self, feed: Mapping[str, SymbolFeed], refreshed_at: datetime) -> None:
        """Swap in a new generation."""
        self._feed = MappingProxyType(dict(feed))
        self._refreshed_at = refreshed_at
        self._generation += 1


@dataclass
class RefreshStats:
    """Statistics for the refresh scheduler."""

    cycles: int = 0
    fetches: int = 0
    failures: int = 0
    skipped: int = 0


class RefreshScheduler:
    """
    Drives sequential, rate-limited re-ingestion of the tracked symbols.

    Concurrent maybe_refresh() calls are serialized: a caller arriving while
    a cycle is in flight waits for it, then re-checks staleness and finds the
    cache fresh.
    """

    def __init__(
        self,
        cache: NewsCache,
        fetch: FetchRawItems,
        symbols: Sequence[str],
        *,
        interval_ms: float = 120_000,
        fetch_delay_ms: float = 150,
        query_template: str = "{symbol} India stock",
        max_items: int = MAX_FEED_ITEMS,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._cache = cache
        self._fetch = fetch
        self._symbols = tuple(symbols)
        self._interval_ms = interval_ms
        self._fetch_delay_s = fetch_delay_ms / 1000.0
        self._query_template = query_template
        self._max_items = max_items
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._stats = RefreshStats()

    @property
    def cache(self) -> NewsCache:
        return self._cache

    @property
    def symbols(self) -> tuple[str, ...]:
        return self._symbols

    @property
    def interval_ms(self) -> float:
        return self._interval_ms

    @property
    def stats(self) -> RefreshStats:
        return self._stats

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def query_for(self, symbol: str) -> str:
        return self._query_template.format(symbol=symbol)

    async def maybe_refresh(
        self,
        now: Optional[datetime] = None,
        interval_ms: Optional[float] = None,
    ) -> bool:
        """
        Run a refresh cycle if the cache is stale.

        Returns True when this call performed a cycle, False when the cache
        was considered fresh.
        """
        interval = self._interval_ms if interval_ms is None else interval_ms

        async with self._lock:
            checked_at = now if now is not None else self._clock()
            if self._cache.is_fresh(checked_at, interval):
                self._stats.skipped += 1
                return False
            await self._refresh_locked(checked_at)
            return True

    async def refresh(self, started_at: Optional[datetime] = None) -> list[FetchOutcome]:
        """Run a refresh cycle unconditionally (still serialized)."""
        async with self._lock:
            return await self._refresh_locked(started_at or self._clock())

    async def _refresh_locked(self, started_at: datetime) -> list[FetchOutcome]:
        logger.info(
            f"News refresh started for {len(self._symbols)} symbol(s)",
            extra={"symbols": len(self._symbols)},
        )

        next_feed: dict[str, SymbolFeed] = {}
        outcomes: list[FetchOutcome] = []

        for index, symbol in enumerate(self._symbols):
            if index > 0 and self._fetch_delay_s > 0:
                await self._sleep(self._fetch_delay_s)

            outcome = await self._fetch_one(symbol)
            outcomes.append(outcome)

            if outcome.ok:
                next_feed[symbol] = normalize(outcome.items, limit=self._max_items)
            else:
                next_feed[symbol] = ()

        self._cache.replace(next_feed, started_at)
        self._stats.cycles += 1

        failed = sum(1 for o in outcomes if not o.ok)
        logger.info(
            f"News refresh complete: {len(outcomes) - failed} ok, {failed} failed",
            extra={
                "generation": self._cache.generation,
                "ok": len(outcomes) - failed,
                "failed": failed,
            },
        )
        return outcomes

    async def _fetch_one(self, symbol: str) -> FetchOutcome:
        query = self.query_for(symbol)
        self._stats.fetches += 1
        try:
            items = await self._fetch(query)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._stats.failures += 1
            logger.warning(
                f"News fetch failed for {symbol}: {e}",
                extra={"symbol": symbol, "query": query, "error": str(e)},
            )
            return FetchOutcome(symbol=symbol, error=e)
        return FetchOutcome(symbol=symbol, items=tuple(items))
