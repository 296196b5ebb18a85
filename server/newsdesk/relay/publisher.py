"""
Quote Publisher

Mirrors the hub's price updates onto Redis so other processes can follow the
same stream:

  quotes:all            every update
  quotes:symbol:{SYM}   updates for one symbol

Heartbeats stay local; the snapshot is published once to quotes:all when the
relay starts.

Usage:
    async with QuotePublisher(redis_url, hub) as publisher:
        await publisher.run()
"""
from __future__ import annotations

import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from newsdesk.core.types import RelayError
from newsdesk.models.quotes import QuoteEvent, QuoteEventType
from newsdesk.quotes.hub import PriceHub, Subscription
from newsdesk.relay.envelope import encode
from newsdesk.serializer import quote_event_to_dict

logger = logging.getLogger(__name__)


class QuotePublisher:
    """Publishes hub update events to Redis pub/sub channels."""

    def __init__(self, redis_url: str, hub: PriceHub, prefix: str = "quotes") -> None:
        self._redis_url = redis_url
        self._hub = hub
        self._prefix = prefix
        self._redis: Redis | None = None
        self._subscription: Optional[Subscription] = None
        self._published = 0

    @property
    def all_channel(self) -> str:
        return f"{self._prefix}:all"

    def symbol_channel(self, symbol: str) -> str:
        return f"{self._prefix}:symbol:{symbol.upper()}"

    @property
    def published(self) -> int:
        return self._published

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the Redis connection and subscribe to the hub."""
        try:
            self._redis = Redis.from_url(self._redis_url, decode_responses=False)
            await self._redis.ping()
        except (RedisError, ValueError) as exc:
            raise RelayError(f"Cannot connect to Redis: {exc}") from exc
        self._subscription = self._hub.subscribe()
        logger.info("QuotePublisher connected to Redis at %s", self._redis_url)

    async def close(self) -> None:
        """Release the hub subscription and close the Redis connection."""
        if self._subscription is not None:
            await self._subscription.aclose()
            self._subscription = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("QuotePublisher disconnected from Redis")

    async def __aenter__(self) -> QuotePublisher:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # ── Publish ───────────────────────────────────────────────────────────────

    def channels_for(self, event: QuoteEvent) -> list[str]:
        if event.type is QuoteEventType.UPDATE and event.symbol:
            return [self.all_channel, self.symbol_channel(event.symbol)]
        if event.type is QuoteEventType.SNAPSHOT:
            return [self.all_channel]
        return []

    async def publish_event(self, event: QuoteEvent) -> int:
        """
        Publish one event to its channels.

        Returns:
            Total subscriber delivery count across channels.

        Raises:
            RelayError: If not connected or Redis returns an error.
        """
        if self._redis is None:
            raise RelayError("QuotePublisher is not connected; call connect() first")

        data = quote_event_to_dict(event)
        total = 0
        for channel in self.channels_for(event):
            try:
                total += await self._redis.publish(channel, encode(channel, data))
            except RedisError as exc:
                raise RelayError("Redis publish failed", channel=channel) from exc
        self._published += 1
        return total

    async def run(self) -> None:
        """Forward hub events until the subscription closes or is cancelled."""
        if self._subscription is None:
            raise RelayError("QuotePublisher is not connected; call connect() first")

        async for event in self._subscription:
            try:
                await self.publish_event(event)
            except RelayError as e:
                logger.error(
                    f"Failed to relay quote event: {e}",
                    extra={"event_type": event.type.value, "error": str(e)},
                )
