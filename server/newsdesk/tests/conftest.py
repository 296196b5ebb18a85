"""
Shared fixtures for newsdesk tests.

FakeSleep stands in for asyncio.sleep wherever a component accepts an
injectable sleep, so timers only fire when a test calls advance().
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest

from newsdesk.models.news import Impact, NewsItem
from newsdesk.quotes import PriceCache, PriceHub

NOW = datetime(2025, 10, 20, 9, 30, tzinfo=timezone.utc)


class FakeSleep:
    """Virtual-clock sleep: every sleeper parks until advance() is called."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._waiters: list[asyncio.Future] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        await fut

    @property
    def pending(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    async def advance(self) -> int:
        """Release every parked sleeper and let them run. Returns how many."""
        for _ in range(100):
            if self._waiters:
                break
            await asyncio.sleep(0)
        waiters, self._waiters = self._waiters, []
        released = 0
        for fut in waiters:
            if not fut.done():
                fut.set_result(None)
                released += 1
        for _ in range(5):
            await asyncio.sleep(0)
        return released


def make_item(
    title: str = "Headline",
    source: str = "Reuters",
    impact: Impact = Impact.POSITIVE,
    published_at: Optional[datetime] = NOW,
    url: str = "",
) -> NewsItem:
    return NewsItem(
        title=title,
        source=source,
        url=url,
        published_at=published_at,
        impact=impact,
    )


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def price_cache() -> PriceCache:
    return PriceCache(clock=lambda: NOW)


@pytest.fixture
async def hub(price_cache, fake_sleep):
    hub = PriceHub(
        price_cache,
        heartbeat_interval_s=10.0,
        clock=lambda: NOW,
        sleep=fake_sleep,
    )
    yield hub
    hub.close()
