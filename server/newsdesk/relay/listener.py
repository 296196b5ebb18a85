"""
Tick Listener

Consumes last-price ticks published to Redis by out-of-process market-data
adapters and funnels each one into PriceCache.on_external_tick(). A broken
connection is retried with exponential backoff until stop() is called.

Expected message body (enveloped or bare):
    {"symbol": "TCS", "price": 4061.5}
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from newsdesk.core.types import ReconnectionState, RelayError
from newsdesk.quotes.price_cache import PriceCache
from newsdesk.relay.envelope import EnvelopeError, decode

logger = logging.getLogger(__name__)


class TickListener:
    """Redis pub/sub consumer feeding the price cache."""

    def __init__(
        self,
        redis_url: str,
        cache: PriceCache,
        channel: str = "ticks:raw",
        *,
        poll_timeout: float = 1.0,
    ) -> None:
        self._redis_url = redis_url
        self._cache = cache
        self._channel = channel
        self._poll_timeout = poll_timeout
        self._redis: Redis | None = None
        self._pubsub: PubSub | None = None
        self._reconnection_state = ReconnectionState(initial_delay_seconds=5.0)
        self._should_run = False
        self._applied = 0
        self._rejected = 0

    @property
    def channel(self) -> str:
        return self._channel

    def get_stats(self) -> dict[str, Any]:
        return {
            "applied": self._applied,
            "rejected": self._rejected,
            "reconnect_attempts": self._reconnection_state.attempt_count,
        }

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Open the Redis connection and subscribe to the tick channel."""
        try:
            self._redis = Redis.from_url(self._redis_url, decode_responses=False)
            await self._redis.ping()
            self._pubsub = self._redis.pubsub(ignore_subscribe_messages=True)
            await self._pubsub.subscribe(self._channel)
        except (RedisError, ValueError) as exc:
            raise RelayError(f"Cannot connect to Redis: {exc}", channel=self._channel) from exc
        logger.info("TickListener subscribed to '%s'", self._channel)

    async def close(self) -> None:
        """Unsubscribe and close the Redis connection."""
        if self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe()
                await self._pubsub.aclose()
            except RedisError as exc:
                logger.warning("Error closing tick subscription: %s", exc)
            self._pubsub = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def __aenter__(self) -> TickListener:
        await self.connect()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    # ── Consumption ───────────────────────────────────────────────────────────

    def handle_raw(self, raw: Optional[bytes | str]) -> bool:
        """Decode one message body and apply it. Returns True if applied."""
        if raw is None:
            return False
        try:
            _, data = decode(raw)
        except EnvelopeError as e:
            self._rejected += 1
            logger.warning(f"Dropping undecodable tick: {e}")
            return False

        applied = self._cache.on_external_tick(data.get("symbol"), data.get("price"))
        if applied:
            self._applied += 1
        else:
            self._rejected += 1
        return applied

    async def poll_once(self) -> bool:
        """
        Wait up to poll_timeout for one message and apply it.

        Raises:
            RelayError: If not connected or the Redis connection breaks.
        """
        if self._pubsub is None:
            raise RelayError("TickListener is not connected; call connect() first")
        try:
            message = await self._pubsub.get_message(
                ignore_subscribe_messages=True,
                timeout=self._poll_timeout,
            )
        except RedisError as exc:
            raise RelayError(f"Redis error while waiting for tick: {exc}") from exc

        if message is None or message.get("type") != "message":
            return False
        return self.handle_raw(message.get("data"))

    async def run(self) -> None:
        """Consume ticks until stop(); reconnects with backoff on failure."""
        self._should_run = True
        while self._should_run:
            try:
                if self._pubsub is None:
                    await self.connect()
                    self._reconnection_state.reset()
                await self.poll_once()
            except RelayError as e:
                await self.close()
                if not self._should_run:
                    return
                delay = self._reconnection_state.next_delay()
                logger.warning(
                    "Tick relay failed, reconnecting",
                    extra={
                        "attempt": self._reconnection_state.attempt_count,
                        "delay_seconds": delay,
                        "error": str(e),
                    },
                )
                await asyncio.sleep(delay)

    def stop(self) -> None:
        self._should_run = False
