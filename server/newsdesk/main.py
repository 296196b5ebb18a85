"""
Newsdesk Service Entry Point

Runs all components in a single async event loop:
  - refresh scheduler: Google News RSS -> normalizer -> news cache (periodic warm)
  - price cache + hub: ticks (mock feed / Redis relay) -> subscribers
  - WebSocket server: quote stream + news/calls/price queries

Usage:
    cd server
    python -m newsdesk.main            # live news, ticks from Redis if REDIS_URL set
    python -m newsdesk.main --mock     # simulated quotes
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from dotenv import load_dotenv

logger = logging.getLogger("newsdesk")


async def run(*, use_mock: bool = False) -> None:
    """
    Main entry point.

    1. Warms the news cache and keeps re-warming it every refresh interval
    2. Starts the price hub and, if configured, the Redis tick/quote relay
    3. Starts the WebSocket server for subscribers
    4. Runs until SIGINT/SIGTERM, then stops everything in reverse order
    """
    from newsdesk.config import settings
    from newsdesk.core.scheduling import RecurringTask
    from newsdesk.core.types import RelayError
    from newsdesk.quotes import MockQuoteFeed, PriceCache, PriceHub
    from newsdesk.relay import QuotePublisher, TickListener
    from newsdesk.rss_client import GoogleNewsClient
    from newsdesk.scheduler import NewsCache, RefreshScheduler
    from newsdesk.service import NewsDeskService
    from newsdesk.ws_server import QuoteWebSocketServer

    news_cfg = settings.news
    logger.info(
        f"Starting newsdesk for {len(news_cfg.symbols)} symbol(s)",
        extra={"refresh_interval_ms": news_cfg.refresh_interval_ms},
    )

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    # ── News ───────────────────────────────────────────────────────
    news_client = GoogleNewsClient(
        news_cfg.rss_url,
        timeout_s=news_cfg.fetch_timeout_s,
        max_items=news_cfg.max_items,
    )
    await news_client.open()

    scheduler = RefreshScheduler(
        NewsCache(),
        news_client.fetch_raw_items,
        news_cfg.symbols,
        interval_ms=news_cfg.refresh_interval_ms,
        fetch_delay_ms=news_cfg.fetch_delay_ms,
        query_template=news_cfg.query_template,
        max_items=news_cfg.max_items,
    )
    warm_task = RecurringTask(
        news_cfg.refresh_interval_ms / 1000.0,
        scheduler.maybe_refresh,
        name="news-warm",
        run_immediately=True,
    )

    # ── Quotes ─────────────────────────────────────────────────────
    prices = PriceCache()
    hub = PriceHub(
        prices,
        heartbeat_interval_s=settings.quotes.heartbeat_interval_s,
        queue_size=settings.quotes.subscriber_queue_size,
    )
    mock_feed = None
    if use_mock or settings.quotes.use_mock:
        mock_feed = MockQuoteFeed(prices, interval_s=settings.quotes.mock_interval_s)

    relay_tasks: list[asyncio.Task] = []
    tick_listener = None
    quote_publisher = None
    if settings.redis.enabled:
        tick_listener = TickListener(settings.redis.url, prices, settings.redis.tick_channel)
        quote_publisher = QuotePublisher(settings.redis.url, hub, settings.redis.quote_prefix)
    else:
        logger.info("Redis relay disabled (REDIS_URL not set)")

    # ── Transport ──────────────────────────────────────────────────
    service = NewsDeskService(
        scheduler,
        prices,
        hub,
        trusted_sources=settings.signals.trusted_sources,
        tau_ms=settings.signals.tau_ms,
        max_calls=settings.signals.max_calls,
    )
    ws_server = QuoteWebSocketServer(
        service,
        host=settings.websocket_server.host,
        port=settings.websocket_server.port,
        allowed_origins=settings.websocket_server.allowed_origins,
    )

    warm_task.start()
    if mock_feed is not None:
        mock_feed.start()
    if tick_listener is not None:
        try:
            await tick_listener.connect()
            relay_tasks.append(asyncio.create_task(tick_listener.run(), name="tick-listener"))
        except RelayError as e:
            logger.error(f"Tick relay unavailable: {e}", extra={"error": str(e)})
            await tick_listener.close()
            tick_listener = None
    if quote_publisher is not None:
        try:
            await quote_publisher.connect()
            relay_tasks.append(asyncio.create_task(quote_publisher.run(), name="quote-publisher"))
        except RelayError as e:
            logger.error(f"Quote relay unavailable: {e}", extra={"error": str(e)})
            await quote_publisher.close()
            quote_publisher = None
    for task in relay_tasks:
        task.add_done_callback(_log_task_exit)
    await ws_server.start()

    try:
        await shutdown_event.wait()
    finally:
        logger.info("Shutting down...")

        await ws_server.stop()
        await warm_task.stop()
        if mock_feed is not None:
            await mock_feed.stop()
        if tick_listener is not None:
            tick_listener.stop()
        for task in relay_tasks:
            task.cancel()
        await asyncio.gather(*relay_tasks, return_exceptions=True)
        if tick_listener is not None:
            await tick_listener.close()
        if quote_publisher is not None:
            await quote_publisher.close()
        hub.close()
        await news_client.close()

        refresh_stats = scheduler.stats
        hub_stats = hub.get_stats()
        ws_stats = ws_server.get_stats()
        logger.info(
            f"Final stats: refresh cycles: {refresh_stats.cycles}, "
            f"fetch failures: {refresh_stats.failures}/{refresh_stats.fetches}, "
            f"subscriptions: {hub_stats.total_subscriptions}, "
            f"updates broadcast: {hub_stats.updates_broadcast}, "
            f"clients served: {ws_stats.total_connections}"
        )


def _log_task_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            f"Background task {task.get_name()} crashed: {exc!r}",
            exc_info=exc,
        )


def cli() -> None:
    load_dotenv(".env")
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s - %(message)s",
    )
    parser = argparse.ArgumentParser(description="newsdesk server")
    parser.add_argument("--mock", action="store_true", help="Simulate quotes instead of waiting for ticks")
    args = parser.parse_args()
    asyncio.run(run(use_mock=args.mock))


if __name__ == "__main__":
    cli()
