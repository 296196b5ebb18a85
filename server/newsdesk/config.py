"""
Newsdesk Configuration

Centralized configuration. All environment variables MUST be defined here.
No os.getenv() calls allowed elsewhere.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SYMBOLS: tuple[str, ...] = ("RELIANCE", "TCS", "HDFCBANK")

DEFAULT_TRUSTED_SOURCES: frozenset[str] = frozenset({
    "Mint",
    "The Economic Times",
    "BloombergQuint",
    "BusinessLine",
    "Moneycontrol",
    "NSE",
    "BSE",
})

GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _optional_env(name: str, default: str = "") -> str:
    """Get an optional environment variable with a default."""
    return os.environ.get(name, default)


def _optional_env_int(name: str, default: int) -> int:
    """Get an optional integer environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid integer value for {name}: {value}")


def _optional_env_float(name: str, default: float) -> float:
    """Get an optional float environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid float value for {name}: {value}")


def _optional_env_bool(name: str, default: bool) -> bool:
    """Get an optional boolean environment variable with a default."""
    value = os.environ.get(name)
    if not value:
        return default
    return value.lower() in ("true", "1", "yes")


def _optional_env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Get an optional comma-separated list, blanks removed."""
    value = os.environ.get(name)
    if not value:
        return default
    items = tuple(part.strip() for part in value.split(",") if part.strip())
    return items or default


@dataclass(frozen=True)
class NewsConfig:
    """News ingestion and refresh cadence."""
    symbols: tuple[str, ...]
    refresh_interval_ms: int
    fetch_delay_ms: int = 150
    fetch_timeout_s: float = 12.0
    query_template: str = "{symbol} India stock"
    rss_url: str = GOOGLE_NEWS_RSS_URL
    max_items: int = 10


@dataclass(frozen=True)
class SignalConfig:
    """Trade-call generation parameters."""
    trusted_sources: frozenset[str]
    tau_ms: float
    max_calls: int = 30


@dataclass(frozen=True)
class QuoteConfig:
    """Price cache broadcast configuration."""
    heartbeat_interval_s: float
    use_mock: bool
    mock_interval_s: float = 1.0
    subscriber_queue_size: int = 1000


@dataclass(frozen=True)
class WebSocketServerConfig:
    """WebSocket server configuration for quote subscribers."""
    host: str
    port: int
    allowed_origins: tuple[str, ...] = ()


@dataclass(frozen=True)
class RedisConfig:
    """Redis relay configuration. An empty url disables the relay."""
    url: str
    tick_channel: str = "ticks:raw"
    quote_prefix: str = "quotes"

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True)
class Settings:
    """Root configuration container."""
    news: NewsConfig
    signals: SignalConfig
    quotes: QuoteConfig
    websocket_server: WebSocketServerConfig
    redis: RedisConfig


def load_settings() -> Settings:
    """Load all settings from environment variables."""
    news = NewsConfig(
        symbols=tuple(s.upper() for s in _optional_env_list("NIFTY_SYMBOLS", DEFAULT_SYMBOLS)),
        refresh_interval_ms=_optional_env_int("REFRESH_INTERVAL_MS", 120_000),
        fetch_delay_ms=_optional_env_int("NEWS_FETCH_DELAY_MS", 150),
        fetch_timeout_s=_optional_env_float("NEWS_FETCH_TIMEOUT_S", 12.0),
        query_template=_optional_env("NEWS_QUERY_TEMPLATE", "{symbol} India stock"),
        rss_url=_optional_env("NEWS_RSS_URL", GOOGLE_NEWS_RSS_URL),
    )
    if news.refresh_interval_ms <= 0:
        raise ConfigurationError(
            f"REFRESH_INTERVAL_MS must be positive, got {news.refresh_interval_ms}"
        )

    signals = SignalConfig(
        trusted_sources=frozenset(
            _optional_env_list("TRUSTED_SOURCES", tuple(sorted(DEFAULT_TRUSTED_SOURCES)))
        ),
        tau_ms=_optional_env_float("RECENCY_TAU_MS", 90 * 60 * 1000.0),
    )
    if signals.tau_ms <= 0:
        raise ConfigurationError(f"RECENCY_TAU_MS must be positive, got {signals.tau_ms}")

    quotes = QuoteConfig(
        heartbeat_interval_s=_optional_env_float("QUOTE_HEARTBEAT_S", 10.0),
        use_mock=_optional_env_bool("USE_MOCK_QUOTES", False),
    )

    websocket_server = WebSocketServerConfig(
        host=_optional_env("WS_HOST", "0.0.0.0"),
        port=_optional_env_int("WS_PORT", 8765),
        allowed_origins=_optional_env_list("FRONTEND_ORIGIN", ()),
    )

    redis = RedisConfig(url=_optional_env("REDIS_URL", ""))

    return Settings(
        news=news,
        signals=signals,
        quotes=quotes,
        websocket_server=websocket_server,
        redis=redis,
    )


settings = load_settings()
