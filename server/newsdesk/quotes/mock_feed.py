"""
Mock quote feed for local development when no broker ticker is available.

Seeds a handful of symbols and random-walks them through the same
set_price() entrypoint as a real market-data adapter.

Usage:
    python -m newsdesk.main --mock
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Mapping, Optional

from newsdesk.core.scheduling import RecurringTask, Sleep
from newsdesk.quotes.price_cache import PriceCache

logger = logging.getLogger(__name__)

SEED_PRICES: dict[str, float] = {
    "RELIANCE": 2500.0,
    "TCS": 4050.0,
    "HDFCBANK": 1530.0,
}

# Max relative move per tick (+/- half of this)
STEP = 0.001


class MockQuoteFeed:
    """Random-walk price generator driven by a RecurringTask."""

    def __init__(
        self,
        cache: PriceCache,
        seeds: Optional[Mapping[str, float]] = None,
        *,
        interval_s: float = 1.0,
        rng: Optional[random.Random] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._cache = cache
        self._seeds = dict(seeds or SEED_PRICES)
        self._rng = rng or random.Random()
        self._task = RecurringTask(interval_s, self.tick, name="mock-quotes", sleep=sleep)

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(self._seeds)

    def seed(self) -> None:
        for symbol, price in self._seeds.items():
            self._cache.set_price(symbol, price)

    def tick(self) -> None:
        for symbol, base in self._seeds.items():
            last = self._cache.get(symbol) or base
            price = round(last * (1 + (self._rng.random() - 0.5) * STEP), 2)
            self._cache.on_external_tick(symbol, price)

    def start(self) -> None:
        logger.info(f"Using mock quotes for {len(self._seeds)} symbol(s)")
        self.seed()
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()
