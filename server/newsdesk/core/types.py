"""
Core Type Definitions and Exceptions

Service-wide exceptions and small result/state types shared by the
fetch adapter, the refresh scheduler and the Redis relay.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from newsdesk.models.news import RawItem


class NewsDeskError(Exception):
    """Base exception for all newsdesk errors."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ValidationError(NewsDeskError):
    """Raised when caller-supplied input is malformed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if field:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = repr(value)[:100]
        super().__init__(message, ctx)
        self.field = field
        self.value = value


class FetchError(NewsDeskError):
    """Raised when the upstream news source cannot be fetched or decoded."""

    def __init__(
        self,
        message: str,
        query: str,
        status: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        ctx["query"] = query
        if status is not None:
            ctx["status"] = status
        super().__init__(message, ctx)
        self.query = query
        self.status = status


class RelayError(NewsDeskError):
    """Raised when the Redis relay cannot connect or publish."""

    def __init__(
        self,
        message: str,
        channel: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        ctx = context or {}
        if channel:
            ctx["channel"] = channel
        super().__init__(message, ctx)
        self.channel = channel


@dataclass(frozen=True)
class FetchOutcome:
    """Result of fetching one symbol's news: either items or the error."""

    symbol: str
    items: tuple[RawItem, ...] = ()
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ReconnectionState:
    """Tracks reconnection attempts for exponential backoff."""

    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    multiplier: float = 2.0
    jitter_factor: float = 0.1
    current_delay: float = field(default=1.0, init=False)
    attempt_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.current_delay = self.initial_delay_seconds

    def next_delay(self) -> float:
        """Calculate next delay with exponential backoff and jitter."""
        delay = self.current_delay

        jitter = delay * self.jitter_factor
        delay = delay + random.uniform(-jitter, jitter)

        self.current_delay = min(
            self.current_delay * self.multiplier,
            self.max_delay_seconds,
        )
        self.attempt_count += 1

        return max(0.1, delay)

    def reset(self) -> None:
        """Reset state after a successful connection."""
        self.current_delay = self.initial_delay_seconds
        self.attempt_count = 0
