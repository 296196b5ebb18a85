"""
Price Broadcast Hub

Fans price-cache writes out to any number of subscribers. Each subscription
owns a bounded queue, an optional symbol filter and a heartbeat task; it
starts with a snapshot of the currently cached prices and then receives every
matching update until it is closed.

    hub = PriceHub(price_cache)
    async with hub.subscribe({"TCS"}) as sub:
        async for event in sub:
            ...
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Iterable, Optional

from newsdesk.core.scheduling import RecurringTask, Sleep
from newsdesk.models.quotes import PriceUpdate, QuoteEvent
from newsdesk.quotes.price_cache import PriceCache

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass
class HubStats:
    """Broadcast hub statistics."""

    active_subscribers: int
    total_subscriptions: int
    updates_broadcast: int
    events_dropped: int


class Subscription:
    """
    One consumer's view of the price stream.

    Iterate it (or call pull()) to receive QuoteEvents. close() stops the
    heartbeat and unregisters from the hub; events already queued are still
    delivered before iteration ends.
    """

    def __init__(
        self,
        hub: PriceHub,
        symbols: Optional[frozenset[str]],
        queue_size: int,
    ) -> None:
        self._hub = hub
        self._symbols = symbols
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self._dropped = 0
        self._heartbeat: Optional[RecurringTask] = None

    @property
    def symbols(self) -> Optional[frozenset[str]]:
        """The symbol filter, or None for every symbol."""
        return self._symbols

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        return self._dropped

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat is not None and self._heartbeat.running

    def matches(self, symbol: str) -> bool:
        return self._symbols is None or symbol in self._symbols

    def _attach_heartbeat(self, task: RecurringTask) -> None:
        self._heartbeat = task
        task.start()

    def _offer(self, event: QuoteEvent) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._dropped += 1
            self._hub._record_drop()
            logger.warning(
                "Subscriber queue full, dropping event",
                extra={"event_type": event.type.value, "dropped": self._dropped},
            )
            return False
        return True

    async def pull(self, timeout: Optional[float] = None) -> Optional[QuoteEvent]:
        """
        Wait for the next event.

        Returns None if ``timeout`` expires or the subscription has been
        closed and drained.
        """
        if self._closed and self._queue.empty():
            return None
        try:
            if timeout is None:
                item = await self._queue.get()
            else:
                item = await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if item is _CLOSED:
            return None
        return item  # type: ignore[return-value]

    def __aiter__(self) -> AsyncIterator[QuoteEvent]:
        return self

    async def __anext__(self) -> QuoteEvent:
        event = await self.pull()
        if event is None:
            raise StopAsyncIteration
        return event

    def close(self) -> None:
        """Stop the heartbeat, unregister, and end iteration."""
        if self._closed:
            return
        self._closed = True
        if self._heartbeat is not None:
            self._heartbeat.cancel()
        self._hub._unregister(self)
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(_CLOSED)

    async def aclose(self) -> None:
        """close() and wait for the heartbeat task to finish unwinding."""
        self.close()
        if self._heartbeat is not None:
            await self._heartbeat.stop()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()


class PriceHub:
    """
    Registry of active price subscriptions fed by a PriceCache listener.

    subscribe() must be called from within a running event loop.
    """

    def __init__(
        self,
        cache: PriceCache,
        *,
        heartbeat_interval_s: float = 10.0,
        queue_size: int = 1000,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._cache = cache
        self._heartbeat_interval_s = heartbeat_interval_s
        self._queue_size = queue_size
        self._clock = clock
        self._sleep = sleep
        self._subscriptions: set[Subscription] = set()
        self._total_subscriptions = 0
        self._updates_broadcast = 0
        self._events_dropped = 0
        self._cache.add_listener(self._on_update)

    @property
    def cache(self) -> PriceCache:
        return self._cache

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, symbols: Optional[Iterable[str]] = None) -> Subscription:
        """
        Open a subscription, optionally restricted to ``symbols``.

        The snapshot event is queued before any later update can be.
        """
        wanted = frozenset(symbols) if symbols else None
        sub = Subscription(self, wanted, self._queue_size)

        sub._offer(QuoteEvent.snapshot(self._cache.snapshot(wanted), self._clock()))
        self._subscriptions.add(sub)
        self._total_subscriptions += 1

        sub._attach_heartbeat(RecurringTask(
            self._heartbeat_interval_s,
            lambda: sub._offer(QuoteEvent.heartbeat(self._clock())),
            name="quote-heartbeat",
            sleep=self._sleep,
        ))

        logger.info(
            f"Price subscriber added (total: {len(self._subscriptions)})",
            extra={"symbols": sorted(wanted) if wanted else "all"},
        )
        return sub

    def _unregister(self, sub: Subscription) -> None:
        self._subscriptions.discard(sub)
        logger.info(f"Price subscriber removed (total: {len(self._subscriptions)})")

    def _record_drop(self) -> None:
        self._events_dropped += 1

    def _on_update(self, update: PriceUpdate) -> None:
        event = QuoteEvent.update(update)
        for sub in list(self._subscriptions):
            if sub.matches(update.symbol):
                sub._offer(event)
        self._updates_broadcast += 1

    def close(self) -> None:
        """Detach from the cache and close every subscription."""
        self._cache.remove_listener(self._on_update)
        for sub in list(self._subscriptions):
            sub.close()

    def get_stats(self) -> HubStats:
        return HubStats(
            active_subscribers=len(self._subscriptions),
            total_subscriptions=self._total_subscriptions,
            updates_broadcast=self._updates_broadcast,
            events_dropped=self._events_dropped,
        )
