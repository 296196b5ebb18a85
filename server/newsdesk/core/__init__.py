"""
Newsdesk Core Utilities

Exceptions, result types and scheduling primitives shared across the service.
"""
from newsdesk.core.scheduling import RecurringTask
from newsdesk.core.types import (
    FetchError,
    FetchOutcome,
    NewsDeskError,
    ReconnectionState,
    RelayError,
    ValidationError,
)

__all__ = [
    "FetchError",
    "FetchOutcome",
    "NewsDeskError",
    "ReconnectionState",
    "RecurringTask",
    "RelayError",
    "ValidationError",
]
