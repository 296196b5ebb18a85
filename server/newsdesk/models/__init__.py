"""
Newsdesk Data Models

Frozen dataclasses with validation.
"""
from newsdesk.models.calls import CallStatus, TradeCall
from newsdesk.models.news import Impact, NewsItem, RawItem, SymbolNews
from newsdesk.models.quotes import PriceUpdate, QuoteEvent, QuoteEventType

__all__ = [
    "CallStatus",
    "Impact",
    "NewsItem",
    "PriceUpdate",
    "QuoteEvent",
    "QuoteEventType",
    "RawItem",
    "SymbolNews",
    "TradeCall",
]
