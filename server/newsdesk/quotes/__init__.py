"""
Quotes Module

Process-wide price cache, its subscriber broadcast hub and a mock feed.
"""
from newsdesk.quotes.hub import HubStats, PriceHub, Subscription
from newsdesk.quotes.mock_feed import MockQuoteFeed
from newsdesk.quotes.price_cache import PriceCache

__all__ = ["HubStats", "MockQuoteFeed", "PriceCache", "PriceHub", "Subscription"]
