"""
RSS Client Module

Fetch adapter for Google News RSS and the feed normalizer.
"""
from newsdesk.rss_client.client import GoogleNewsClient, parse_feed
from newsdesk.rss_client.normalizer import (
    FALLBACK_SOURCE,
    MAX_FEED_ITEMS,
    normalize,
)

__all__ = [
    "FALLBACK_SOURCE",
    "GoogleNewsClient",
    "MAX_FEED_ITEMS",
    "normalize",
    "parse_feed",
]
