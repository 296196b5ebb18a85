"""
Relay Envelope

JSON framing for messages carried over Redis pub/sub:

  {
    "channel": "quotes:symbol:TCS",
    "data": { ...payload... }
  }
"""
from __future__ import annotations

import json
from typing import Any


class EnvelopeError(Exception):
    """Raised when a relay message cannot be encoded or decoded."""


def encode(channel: str, data: dict[str, Any]) -> str:
    try:
        return json.dumps({"channel": channel, "data": data}, default=str)
    except (TypeError, ValueError) as exc:
        raise EnvelopeError(f"Failed to encode relay message: {exc}") from exc


def decode(raw: str | bytes) -> tuple[str | None, dict[str, Any]]:
    """
    Decode a relay message into (channel, data).

    Bare payload objects without an envelope are accepted too, so adapters
    that publish ``{"symbol": ..., "price": ...}`` directly still work; the
    channel is None in that case.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        message = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise EnvelopeError(f"Failed to decode relay message: {exc}") from exc

    if not isinstance(message, dict):
        raise EnvelopeError(f"Expected JSON object, got {type(message).__name__}")

    if "channel" in message and isinstance(message.get("data"), dict):
        return message["channel"], message["data"]
    return None, message
