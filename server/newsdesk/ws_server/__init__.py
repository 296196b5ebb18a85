"""
WebSocket Server for Quote Streaming

Pushes price events to connected clients and answers query requests.
"""
from newsdesk.ws_server.server import QuoteWebSocketServer, ServerStats, symbols_from_path

__all__ = ["QuoteWebSocketServer", "ServerStats", "symbols_from_path"]
