"""
Wire Serializer

Converts models into the plain dicts sent over the WebSocket push channel and
the Redis relay. Field names use camelCase so every transport carries the
same shape.
"""
from __future__ import annotations

from typing import Any

from newsdesk.models.calls import TradeCall
from newsdesk.models.news import NewsItem, SymbolNews
from newsdesk.models.quotes import QuoteEvent, QuoteEventType


def news_item_to_dict(item: NewsItem) -> dict[str, Any]:
    return {
        "title": item.title,
        "source": item.source,
        "url": item.url,
        "ts": item.published_at.isoformat() if item.published_at else None,
        "impact": item.impact.value,
    }


def symbol_news_to_dict(entry: SymbolNews) -> dict[str, Any]:
    return {
        "symbol": entry.symbol,
        "items": [news_item_to_dict(i) for i in entry.items],
    }


def trade_call_to_dict(call: TradeCall) -> dict[str, Any]:
    return {
        "symbol": call.symbol,
        "buyFrom": call.buy_from,
        "buyTo": call.buy_to,
        "trigger": call.trigger,
        "target": call.target,
        "stop": call.stop,
        "confidence": call.confidence,
        "status": call.status.value,
        "createdAt": call.created_at.isoformat(),
    }


def quote_event_to_dict(event: QuoteEvent) -> dict[str, Any]:
    """
    Serialize a QuoteEvent.

    snapshot  -> {"type", "updates": {SYM: price}, "ts"}
    update    -> {"type", "symbol", "price", "ts"}
    heartbeat -> {"type", "ts"}
    """
    data: dict[str, Any] = {"type": event.type.value, "ts": event.timestamp.isoformat()}
    if event.type is QuoteEventType.SNAPSHOT:
        data["updates"] = dict(event.prices)
    elif event.type is QuoteEventType.UPDATE:
        data["symbol"] = event.symbol
        data["price"] = event.price
    return data
