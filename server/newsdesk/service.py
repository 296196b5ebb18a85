"""
Newsdesk Query Surface

The operations exposed to transports (WebSocket server, any HTTP layer):
news per symbol, ranked trade calls, last price and price subscriptions.
Caller input is validated here; that is the only error a caller sees.
Upstream fetch failures have already been absorbed by the scheduler.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence, Union

from newsdesk.config import DEFAULT_TRUSTED_SOURCES
from newsdesk.core.types import ValidationError
from newsdesk.models.calls import TradeCall
from newsdesk.models.news import SymbolNews
from newsdesk.quotes.hub import PriceHub, Subscription
from newsdesk.quotes.price_cache import PriceCache
from newsdesk.scheduler.refresh import RefreshScheduler, utc_now
from newsdesk.signals.generator import DEFAULT_TAU_MS, MAX_CALLS, generate_calls

logger = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9&._-]{0,31}$")
MAX_SYMBOLS = 200

SymbolsParam = Union[str, Sequence[str], None]


def parse_symbols(raw: SymbolsParam) -> Optional[tuple[str, ...]]:
    """
    Parse a symbol list from a comma-separated string or a sequence.

    Blanks are dropped, symbols uppercased and de-duplicated in order.
    Returns None when nothing was requested.

    Raises:
        ValidationError: If the parameter has the wrong type or contains
                         a malformed symbol
    """
    if raw is None:
        return None

    if isinstance(raw, str):
        parts: Iterable[object] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        parts = raw
    else:
        raise ValidationError(
            f"symbols must be a string or list, got {type(raw).__name__}",
            field="symbols",
            value=raw,
        )

    symbols: list[str] = []
    for part in parts:
        if not isinstance(part, str):
            raise ValidationError("symbol must be a string", field="symbols", value=part)
        symbol = part.strip().upper()
        if not symbol:
            continue
        if not SYMBOL_PATTERN.match(symbol):
            raise ValidationError(f"Malformed symbol: {symbol}", field="symbols", value=part)
        if symbol not in symbols:
            symbols.append(symbol)

    if len(symbols) > MAX_SYMBOLS:
        raise ValidationError(
            f"Too many symbols requested ({len(symbols)} > {MAX_SYMBOLS})",
            field="symbols",
        )

    return tuple(symbols) or None


class NewsDeskService:
    """Query operations over the news cache and price cache."""

    def __init__(
        self,
        scheduler: RefreshScheduler,
        prices: PriceCache,
        hub: PriceHub,
        *,
        trusted_sources: Iterable[str] = DEFAULT_TRUSTED_SOURCES,
        tau_ms: float = DEFAULT_TAU_MS,
        max_calls: int = MAX_CALLS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._scheduler = scheduler
        self._prices = prices
        self._hub = hub
        self._trusted_sources = frozenset(trusted_sources)
        self._tau_ms = tau_ms
        self._max_calls = max_calls
        self._clock = clock

    def _resolve(self, symbols: SymbolsParam) -> tuple[str, ...]:
        return parse_symbols(symbols) or self._scheduler.symbols

    async def get_news(self, symbols: SymbolsParam = None) -> list[SymbolNews]:
        """Cached feed per requested symbol (tracked symbols by default)."""
        wanted = self._resolve(symbols)
        await self._scheduler.maybe_refresh()
        cache = self._scheduler.cache
        return [SymbolNews(symbol=s, items=cache.get(s)) for s in wanted]

    async def get_calls(self, symbols: SymbolsParam = None) -> list[TradeCall]:
        """Ranked trade calls for the requested symbols."""
        wanted = self._resolve(symbols)
        await self._scheduler.maybe_refresh()
        feed = self._scheduler.cache.feed
        news = {s: feed[s] for s in wanted if s in feed}
        return generate_calls(
            news,
            self._prices.snapshot(wanted),
            now=self._clock(),
            trusted_sources=self._trusted_sources,
            tau_ms=self._tau_ms,
            max_calls=self._max_calls,
        )

    def get_price(self, symbol: str) -> Optional[float]:
        parsed = parse_symbols(symbol)
        if not parsed or len(parsed) != 1:
            raise ValidationError("Exactly one symbol is required", field="symbol", value=symbol)
        return self._prices.get(parsed[0])

    def subscribe_prices(self, symbols: SymbolsParam = None) -> Subscription:
        """Open a price subscription (snapshot, updates, heartbeats)."""
        return self._hub.subscribe(parse_symbols(symbols))

    def health(self) -> dict[str, object]:
        return {"ok": True, "at": self._clock().isoformat()}
