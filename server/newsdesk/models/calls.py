"""
Trade Call Models

Point-in-time trade candidates derived from news sentiment and a live price.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class CallStatus(str, Enum):
    """Lifecycle status of a generated call. Only PENDING is ever emitted."""

    PENDING = "PENDING"


@dataclass(frozen=True)
class TradeCall:
    """
    A ranked trade candidate with concrete price levels.

    Levels satisfy stop < buy_from < buy_to, buy_from <= trigger <= buy_to
    and trigger < target.
    """

    symbol: str
    buy_from: float
    buy_to: float
    trigger: float
    target: float
    stop: float
    confidence: float
    created_at: datetime
    status: CallStatus = CallStatus.PENDING

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol must be non-empty string")
        if not (0.0 <= self.confidence <= 0.95):
            raise ValueError(
                f"confidence must be in range [0.0, 0.95], got {self.confidence}"
            )
        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware")
