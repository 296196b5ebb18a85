"""
newsdesk.relay: Redis transport around the price cache.

Public API:
    TickListener   : external ticks from Redis -> PriceCache.on_external_tick
    QuotePublisher : hub updates -> Redis quote channels
    encode/decode  : {channel, data} JSON envelope
"""
from .envelope import EnvelopeError, decode, encode
from .listener import TickListener
from .publisher import QuotePublisher

__all__ = [
    "EnvelopeError",
    "QuotePublisher",
    "TickListener",
    "decode",
    "encode",
]
