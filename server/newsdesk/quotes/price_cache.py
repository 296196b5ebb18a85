"""
Price Cache

Process-wide last-traded-price per symbol. set_price() is the only mutation
entrypoint; every accepted write is pushed synchronously to registered
listeners (the broadcast hub, relays).
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from newsdesk.core.types import ValidationError
from newsdesk.models.quotes import PriceUpdate

logger = logging.getLogger(__name__)

PriceListener = Callable[[PriceUpdate], None]


class PriceCache:
    """
    Symbol -> last price. Absence of a key means no known price.

    Writes are single-key overwrites (last write wins per symbol); listeners
    are notified in registration order within the same call.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._prices: dict[str, float] = {}
        self._listeners: list[PriceListener] = []
        self._clock = clock
        self._writes = 0

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._prices

    def __len__(self) -> int:
        return len(self._prices)

    @property
    def writes(self) -> int:
        return self._writes

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: PriceListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PriceListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def get(self, symbol: str) -> Optional[float]:
        return self._prices.get(symbol)

    def snapshot(self, symbols: Optional[Iterable[str]] = None) -> dict[str, float]:
        """Copy of the cache, restricted to ``symbols`` when given."""
        if symbols is None:
            return dict(self._prices)
        return {s: self._prices[s] for s in symbols if s in self._prices}

    def set_price(self, symbol: str, price: float) -> PriceUpdate:
        """
        Overwrite the cached price and notify listeners.

        Raises:
            ValidationError: If symbol is empty or price is not a positive
                             finite number
        """
        if not symbol:
            raise ValidationError("symbol must be non-empty", field="symbol", value=symbol)
        try:
            value = float(price)
        except (TypeError, ValueError) as e:
            raise ValidationError("price must be numeric", field="price", value=price) from e
        if not math.isfinite(value) or value <= 0:
            raise ValidationError("price must be positive", field="price", value=price)

        self._prices[symbol] = value
        self._writes += 1
        update = PriceUpdate(symbol=symbol, price=value, timestamp=self._clock())

        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                logger.exception(f"Price listener failed for {symbol}")

        return update

    def on_external_tick(self, symbol: Optional[str], price: object) -> bool:
        """
        Intake for market-data adapters.

        Invalid ticks are logged and dropped. Returns True if the tick was
        applied.
        """
        try:
            self.set_price(str(symbol or "").strip().upper(), price)  # type: ignore[arg-type]
        except ValidationError as e:
            logger.warning(
                f"Dropping invalid tick: {e}",
                extra={"symbol": symbol, "price": repr(price)[:50]},
            )
            return False
        return True
