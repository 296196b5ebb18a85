"""
Tests for newsdesk.ws_server

Request handling is exercised directly; the connection handler runs against
a minimal in-memory connection double instead of a real socket.
"""
import asyncio
import json
from types import SimpleNamespace

import pytest

from newsdesk.core.types import ValidationError
from newsdesk.models.news import RawItem
from newsdesk.scheduler import NewsCache, RefreshScheduler
from newsdesk.service import NewsDeskService
from newsdesk.ws_server import QuoteWebSocketServer, symbols_from_path

from conftest import NOW


async def _fetch(query):
    return [RawItem(title="Order book surge lifts shares", source="Mint")]


async def _no_sleep(delay):
    return None


@pytest.fixture
def server(price_cache, hub):
    scheduler = RefreshScheduler(
        NewsCache(), _fetch, ("TCS",), clock=lambda: NOW, sleep=_no_sleep
    )
    service = NewsDeskService(scheduler, price_cache, hub, clock=lambda: NOW)
    return QuoteWebSocketServer(service)


class FakeConnection:
    """Just enough of a server connection for _handle_client."""

    def __init__(self, path: str, incoming: list[str]) -> None:
        self.remote_address = ("127.0.0.1", 50000)
        self.request = SimpleNamespace(path=path)
        self.sent: list[dict] = []
        self.closed_with = None
        self._incoming = incoming

    def __aiter__(self):
        return self._messages()

    async def _messages(self):
        for message in self._incoming:
            for _ in range(3):
                await asyncio.sleep(0)
            yield message

    async def send(self, payload: str) -> None:
        self.sent.append(json.loads(payload))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = code


class TestSymbolsFromPath:
    def test_no_query(self):
        assert symbols_from_path("/") is None

    def test_symbols_uppercased(self):
        assert symbols_from_path("/stream?symbols=tcs,infy") == ("TCS", "INFY")

    def test_repeated_parameter_merged(self):
        assert symbols_from_path("/?symbols=TCS&symbols=INFY") == ("TCS", "INFY")

    def test_empty_value(self):
        assert symbols_from_path("/?symbols=") is None

    def test_malformed(self):
        with pytest.raises(ValidationError):
            symbols_from_path("/?symbols=TCS;DROP")


class TestHandleRequest:
    async def test_ping(self, server):
        assert await server.handle_request({"type": "ping"}) == {"type": "pong"}

    async def test_news(self, server):
        reply = await server.handle_request({"type": "news", "symbols": "tcs"})

        assert reply["type"] == "news"
        assert reply["data"][0]["symbol"] == "TCS"
        item = reply["data"][0]["items"][0]
        assert item["impact"] == "positive"
        assert item["source"] == "Mint"

    async def test_calls(self, server, price_cache):
        price_cache.set_price("TCS", 1000.0)

        reply = await server.handle_request({"type": "calls"})

        assert reply["type"] == "calls"
        call = reply["data"][0]
        assert call["symbol"] == "TCS"
        assert call["buyFrom"] == 998.0
        assert call["buyTo"] == 1002.0
        assert call["status"] == "PENDING"
        assert call["createdAt"] == NOW.isoformat()

    async def test_price(self, server, price_cache):
        price_cache.set_price("TCS", 4050.0)

        reply = await server.handle_request({"type": "price", "symbol": "tcs"})

        assert reply == {"type": "price", "symbol": "TCS", "price": 4050.0}

    async def test_price_unknown_symbol(self, server):
        reply = await server.handle_request({"type": "price", "symbol": "INFY"})
        assert reply["price"] is None

    async def test_health(self, server):
        reply = await server.handle_request({"type": "health"})
        assert reply == {"type": "health", "ok": True, "at": NOW.isoformat()}

    async def test_validation_error_reply(self, server):
        reply = await server.handle_request({"type": "news", "symbols": "BAD!"})

        assert reply["type"] == "error"
        assert reply["field"] == "symbols"

    async def test_price_without_symbol(self, server):
        reply = await server.handle_request({"type": "price"})
        assert reply["type"] == "error"

    async def test_unknown_request(self, server):
        reply = await server.handle_request({"type": "subscribe_everything"})

        assert reply["error"] == "unknown_request"
        assert server.get_stats().requests_served == 1


class TestHandleMessage:
    async def test_invalid_json(self, server):
        assert await server.handle_message("{nope") == {"type": "error", "error": "invalid_json"}

    async def test_non_object(self, server):
        reply = await server.handle_message("[1, 2]")
        assert reply["error"] == "invalid_request"

    async def test_bytes_accepted(self, server):
        assert await server.handle_message(b'{"type": "ping"}') == {"type": "pong"}


class TestHandleClient:
    async def test_streams_snapshot_and_answers_requests(self, server, price_cache, hub):
        price_cache.set_price("TCS", 4050.0)
        conn = FakeConnection("/?symbols=tcs", ['{"type": "ping"}'])

        await server._handle_client(conn)

        types = [m["type"] for m in conn.sent]
        assert "snapshot" in types
        assert "pong" in types
        snapshot = next(m for m in conn.sent if m["type"] == "snapshot")
        assert snapshot["updates"] == {"TCS": 4050.0}
        assert hub.subscriber_count == 0
        assert server.client_count == 0
        assert server.get_stats().total_connections == 1

    async def test_invalid_symbols_closes_with_policy_violation(self, server, hub):
        conn = FakeConnection("/?symbols=bad!", [])

        await server._handle_client(conn)

        assert conn.sent[0]["type"] == "error"
        assert conn.closed_with == 1008
        assert hub.get_stats().total_subscriptions == 0
