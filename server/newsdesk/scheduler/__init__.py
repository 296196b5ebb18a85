"""
Refresh Scheduler Module

Owns the news cache state and its TTL-gated refresh cycles.
"""
from newsdesk.scheduler.refresh import NewsCache, RefreshScheduler, RefreshStats

__all__ = ["NewsCache", "RefreshScheduler", "RefreshStats"]
