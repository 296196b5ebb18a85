"""
Trade Call Generator

Turns each symbol's cached news into a time-decayed, source-weighted
sentiment score and, for net-positive symbols with a known price, emits a
PENDING trade call with entry band, trigger, target and stop levels anchored
to the live price.

Scoring per item:
    impact (+1 / -1 / 0) x credibility (1.25 trusted, else 1.0)
        x exp(-age_ms / tau_ms)

The symbol score is the sum over its feed, normalized as clamp(score / 3).
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Sequence

from newsdesk.config import DEFAULT_TRUSTED_SOURCES
from newsdesk.models.calls import CallStatus, TradeCall
from newsdesk.models.news import NewsItem

logger = logging.getLogger(__name__)

DEFAULT_TAU_MS = 90 * 60 * 1000.0
TRUSTED_SOURCE_WEIGHT = 1.25
SCORE_SCALE = 3.0
MAX_CALLS = 30

BASE_CONFIDENCE = 0.55
CONFIDENCE_SLOPE = 0.30
MAX_CONFIDENCE = 0.95

# Level multipliers relative to the anchor price
BUY_FROM_FACTOR = 0.998
BUY_TO_FACTOR = 1.002
TRIGGER_FACTOR = 1.001
TARGET_FACTOR = 1.010
STOP_FACTOR = 0.995


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def recency_weight(published_at: Optional[datetime], now: datetime, tau_ms: float) -> float:
    """Exponential decay by item age; missing timestamps count as brand new."""
    ts = published_at or now
    age_ms = max(1.0, (now - ts).total_seconds() * 1000.0)
    return math.exp(-age_ms / tau_ms)


def item_contribution(
    item: NewsItem,
    now: datetime,
    trusted_sources: Iterable[str] = DEFAULT_TRUSTED_SOURCES,
    tau_ms: float = DEFAULT_TAU_MS,
) -> float:
    credibility = TRUSTED_SOURCE_WEIGHT if item.source in trusted_sources else 1.0
    return item.impact.weight * credibility * recency_weight(item.published_at, now, tau_ms)


def symbol_score(
    items: Sequence[NewsItem],
    now: datetime,
    trusted_sources: Iterable[str] = DEFAULT_TRUSTED_SOURCES,
    tau_ms: float = DEFAULT_TAU_MS,
) -> float:
    """Raw (unclamped) weighted sentiment of a feed."""
    trusted = frozenset(trusted_sources)
    return sum(item_contribution(item, now, trusted, tau_ms) for item in items)


def normalized_score(score: float) -> float:
    """Scale a raw score into [-1, 1]."""
    return _clamp(score / SCORE_SCALE, -1.0, 1.0)


def confidence_for(news_score: float) -> float:
    return _clamp(BASE_CONFIDENCE + CONFIDENCE_SLOPE * news_score, 0.0, MAX_CONFIDENCE)


def build_call(symbol: str, price: float, news_score: float, now: datetime) -> TradeCall:
    """Create a PENDING call with levels anchored to ``price``."""
    return TradeCall(
        symbol=symbol,
        buy_from=round(price * BUY_FROM_FACTOR, 2),
        buy_to=round(price * BUY_TO_FACTOR, 2),
        trigger=round(price * TRIGGER_FACTOR, 2),
        target=round(price * TARGET_FACTOR, 2),
        stop=round(price * STOP_FACTOR, 2),
        confidence=confidence_for(news_score),
        status=CallStatus.PENDING,
        created_at=now,
    )


def _levels_ordered(call: TradeCall) -> bool:
    # trigger may touch either edge of the entry band after rounding
    return (
        call.stop < call.buy_from < call.buy_to
        and call.buy_from <= call.trigger <= call.buy_to
        and call.trigger < call.target
    )


def generate_calls(
    news_feed: Mapping[str, Sequence[NewsItem]],
    prices: Mapping[str, Optional[float]],
    *,
    now: Optional[datetime] = None,
    trusted_sources: Iterable[str] = DEFAULT_TRUSTED_SOURCES,
    tau_ms: float = DEFAULT_TAU_MS,
    max_calls: int = MAX_CALLS,
) -> list[TradeCall]:
    """
    Rank trade candidates for every symbol with both a price and news.

    Symbols without a positive price, with an empty feed, or with a
    non-positive normalized score are skipped. The result is sorted by
    descending confidence (stable, so ties keep ``news_feed`` order) and
    truncated to ``max_calls``.
    """
    now = now or datetime.now(timezone.utc)
    trusted = frozenset(trusted_sources)
    picks: list[TradeCall] = []

    for symbol, items in news_feed.items():
        price = prices.get(symbol)
        if not price or price <= 0 or not items:
            continue

        news_score = normalized_score(symbol_score(items, now, trusted, tau_ms))
        if news_score <= 0:
            continue

        call = build_call(symbol, float(price), news_score, now)
        if not _levels_ordered(call):
            # Only reachable for prices so small that rounding collapses levels
            logger.debug(
                f"Skipping {symbol}: levels collapse at price {price}",
                extra={"symbol": symbol, "price": price},
            )
            continue
        picks.append(call)

    picks.sort(key=lambda c: c.confidence, reverse=True)
    return picks[:max_calls]
