"""
WebSocket Server for Quote Streaming

Each client connection owns one price subscription. The optional
``?symbols=A,B`` query string in the connection path filters it. Events
(snapshot, update, heartbeat) are pushed as JSON; clients may also send
request messages:

    {"type": "ping"}
    {"type": "news",   "symbols": "TCS,INFY"}
    {"type": "calls",  "symbols": ["TCS"]}
    {"type": "price",  "symbol": "TCS"}
    {"type": "health"}

Malformed parameters get an {"type": "error"} reply; the connection stays
open.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence
from urllib.parse import parse_qs, urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from newsdesk.core.types import ValidationError
from newsdesk.quotes.hub import Subscription
from newsdesk.serializer import (
    quote_event_to_dict,
    symbol_news_to_dict,
    trade_call_to_dict,
)
from newsdesk.service import NewsDeskService, parse_symbols

logger = logging.getLogger(__name__)


def symbols_from_path(path: str) -> Optional[tuple[str, ...]]:
    """Extract and validate the ``symbols`` query parameter of a request path."""
    query = parse_qs(urlsplit(path).query)
    values = query.get("symbols")
    if not values:
        return None
    return parse_symbols(",".join(values))


@dataclass
class ServerStats:
    """WebSocket server statistics."""

    connected_clients: int
    total_connections: int
    messages_sent: int
    requests_served: int
    start_time: datetime


class QuoteWebSocketServer:
    """
    WebSocket server that streams price events and answers query requests.
    """

    def __init__(
        self,
        service: NewsDeskService,
        host: str = "0.0.0.0",
        port: int = 8765,
        *,
        allowed_origins: Sequence[str] = (),
    ) -> None:
        self._service = service
        self._host = host
        self._port = port
        self._allowed_origins = tuple(allowed_origins)
        self._server: Optional[Server] = None
        self._clients: set[ServerConnection] = set()
        self._total_connections = 0
        self._messages_sent = 0
        self._requests_served = 0
        self._start_time: Optional[datetime] = None

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._start_time = datetime.now(timezone.utc)
        self._server = await serve(
            self._handle_client,
            self._host,
            self._port,
            origins=list(self._allowed_origins) or None,
            ping_interval=30,
            ping_timeout=10,
        )
        logger.info(
            f"Quote WebSocket server started on ws://{self._host}:{self._port}",
            extra={"origins": self._allowed_origins or "any"},
        )

    async def stop(self) -> None:
        """Stop the WebSocket server and disconnect all clients."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Quote WebSocket server stopped")

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """Handle a new client connection."""
        client_id = f"{websocket.remote_address}"
        path = websocket.request.path if websocket.request else "/"

        try:
            symbols = symbols_from_path(path)
        except ValidationError as e:
            await self._send(websocket, self._error(e))
            await websocket.close(code=1008, reason="invalid symbols")
            return

        subscription = self._service.subscribe_prices(symbols)
        self._clients.add(websocket)
        self._total_connections += 1
        logger.info(f"Client connected: {client_id} (total: {len(self._clients)})")

        pump = asyncio.create_task(self._pump(websocket, subscription))
        try:
            async for message in websocket:
                reply = await self.handle_message(message)
                await self._send(websocket, reply)
        except ConnectionClosed:
            pass
        finally:
            await subscription.aclose()
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass
            self._clients.discard(websocket)
            logger.info(f"Client disconnected: {client_id} (total: {len(self._clients)})")

    async def _pump(self, websocket: ServerConnection, subscription: Subscription) -> None:
        """Forward subscription events to the client until either side ends."""
        async for event in subscription:
            if not await self._send(websocket, quote_event_to_dict(event)):
                return

    async def _send(self, websocket: ServerConnection, payload: dict[str, Any]) -> bool:
        """Send a JSON message to a single client, return True on success."""
        try:
            await websocket.send(json.dumps(payload))
        except ConnectionClosed:
            return False
        except Exception as e:
            logger.warning(f"Failed to send to client: {e}")
            return False
        self._messages_sent += 1
        return True

    @staticmethod
    def _error(error: ValidationError) -> dict[str, Any]:
        return {"type": "error", "error": error.message, "field": error.field}

    async def handle_message(self, message: str | bytes) -> dict[str, Any]:
        """Decode one client message and build the reply."""
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {"type": "error", "error": "invalid_json"}
        if not isinstance(data, dict):
            return {"type": "error", "error": "invalid_request"}
        return await self.handle_request(data)

    async def handle_request(self, data: dict[str, Any]) -> dict[str, Any]:
        """Dispatch a decoded request to the query surface."""
        msg_type = data.get("type", "")
        self._requests_served += 1
        try:
            if msg_type == "ping":
                return {"type": "pong"}
            if msg_type == "news":
                news = await self._service.get_news(data.get("symbols"))
                return {"type": "news", "data": [symbol_news_to_dict(n) for n in news]}
            if msg_type == "calls":
                calls = await self._service.get_calls(data.get("symbols"))
                return {"type": "calls", "data": [trade_call_to_dict(c) for c in calls]}
            if msg_type == "price":
                symbol = data.get("symbol")
                price = self._service.get_price(symbol)
                return {"type": "price", "symbol": str(symbol).strip().upper(), "price": price}
            if msg_type == "health":
                return {"type": "health", **self._service.health()}
        except ValidationError as e:
            return self._error(e)

        return {"type": "error", "error": "unknown_request", "request": str(msg_type)[:50]}

    def get_stats(self) -> ServerStats:
        """Get current server statistics."""
        return ServerStats(
            connected_clients=len(self._clients),
            total_connections=self._total_connections,
            messages_sent=self._messages_sent,
            requests_served=self._requests_served,
            start_time=self._start_time or datetime.now(timezone.utc),
        )

    @property
    def client_count(self) -> int:
        """Get current number of connected clients."""
        return len(self._clients)
