"""
News Data Models

News items at the two pipeline stages: the loosely-typed RawItem handed over
by the fetch adapter, and the canonical NewsItem stored in the feed cache.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Impact(str, Enum):
    """Coarse sentiment label of a headline."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @property
    def weight(self) -> int:
        """Signed contribution of this label to a symbol score."""
        if self is Impact.POSITIVE:
            return 1
        if self is Impact.NEGATIVE:
            return -1
        return 0


@dataclass(frozen=True)
class RawItem:
    """
    A news entry as decoded from the upstream feed, before normalization.

    Every field may be missing; the normalizer fills defaults.
    """

    title: Optional[str] = None
    source: Optional[str] = None
    url: Optional[str] = None
    published: Optional[str] = None


@dataclass(frozen=True)
class NewsItem:
    """
    Canonical, immutable news entry for one symbol's feed.

    Identity for deduplication is the (title, source) pair.
    """

    title: str
    source: str
    url: str
    published_at: Optional[datetime]
    impact: Impact

    def __post_init__(self) -> None:
        if not self.source:
            raise ValueError("source must be non-empty string")
        if self.published_at is not None and self.published_at.tzinfo is None:
            raise ValueError("published_at must be timezone-aware")

    @property
    def identity(self) -> tuple[str, str]:
        return (self.title, self.source)


@dataclass(frozen=True)
class SymbolNews:
    """A symbol paired with its cached feed, as returned by the query surface."""

    symbol: str
    items: tuple[NewsItem, ...]
