"""
Quote Event Models

Events pushed to price subscribers: an initial snapshot, per-symbol updates
and keep-alive heartbeats.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class QuoteEventType(str, Enum):
    SNAPSHOT = "snapshot"
    UPDATE = "update"
    HEARTBEAT = "heartbeat"


@dataclass(frozen=True)
class PriceUpdate:
    """A single accepted write to the price cache."""

    symbol: str
    price: float
    timestamp: datetime


@dataclass(frozen=True)
class QuoteEvent:
    """One message on a price subscription."""

    type: QuoteEventType
    timestamp: datetime
    symbol: Optional[str] = None
    price: Optional[float] = None
    prices: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def snapshot(cls, prices: Mapping[str, float], timestamp: datetime) -> QuoteEvent:
        return cls(
            type=QuoteEventType.SNAPSHOT,
            timestamp=timestamp,
            prices=MappingProxyType(dict(prices)),
        )

    @classmethod
    def update(cls, update: PriceUpdate) -> QuoteEvent:
        return cls(
            type=QuoteEventType.UPDATE,
            timestamp=update.timestamp,
            symbol=update.symbol,
            price=update.price,
        )

    @classmethod
    def heartbeat(cls, timestamp: datetime) -> QuoteEvent:
        return cls(type=QuoteEventType.HEARTBEAT, timestamp=timestamp)
