"""
Tests for newsdesk.config
"""
import pytest

from newsdesk.config import (
    DEFAULT_SYMBOLS,
    DEFAULT_TRUSTED_SOURCES,
    ConfigurationError,
    load_settings,
)

ENV_VARS = (
    "NIFTY_SYMBOLS",
    "REFRESH_INTERVAL_MS",
    "NEWS_FETCH_DELAY_MS",
    "TRUSTED_SOURCES",
    "RECENCY_TAU_MS",
    "QUOTE_HEARTBEAT_S",
    "USE_MOCK_QUOTES",
    "WS_PORT",
    "FRONTEND_ORIGIN",
    "REDIS_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()

    assert settings.news.symbols == DEFAULT_SYMBOLS
    assert settings.news.refresh_interval_ms == 120_000
    assert settings.news.fetch_delay_ms == 150
    assert settings.news.max_items == 10
    assert settings.signals.trusted_sources == DEFAULT_TRUSTED_SOURCES
    assert settings.signals.tau_ms == 90 * 60 * 1000
    assert settings.signals.max_calls == 30
    assert settings.quotes.heartbeat_interval_s == 10.0
    assert settings.quotes.use_mock is False
    assert settings.websocket_server.allowed_origins == ()
    assert settings.redis.enabled is False


def test_symbols_uppercased_and_trimmed(monkeypatch):
    monkeypatch.setenv("NIFTY_SYMBOLS", " infy, tcs ,,")

    assert load_settings().news.symbols == ("INFY", "TCS")


def test_overrides(monkeypatch):
    monkeypatch.setenv("REFRESH_INTERVAL_MS", "60000")
    monkeypatch.setenv("USE_MOCK_QUOTES", "true")
    monkeypatch.setenv("TRUSTED_SOURCES", "Reuters,Mint")
    monkeypatch.setenv("FRONTEND_ORIGIN", "http://localhost:5173")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")

    settings = load_settings()

    assert settings.news.refresh_interval_ms == 60_000
    assert settings.quotes.use_mock is True
    assert settings.signals.trusted_sources == frozenset({"Reuters", "Mint"})
    assert settings.websocket_server.allowed_origins == ("http://localhost:5173",)
    assert settings.redis.enabled is True


@pytest.mark.parametrize("name,value", [
    ("REFRESH_INTERVAL_MS", "soon"),
    ("REFRESH_INTERVAL_MS", "0"),
    ("RECENCY_TAU_MS", "-5"),
    ("QUOTE_HEARTBEAT_S", "often"),
    ("WS_PORT", "80.5"),
])
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        load_settings()
