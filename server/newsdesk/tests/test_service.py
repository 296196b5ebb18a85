"""
Tests for newsdesk.service

The scheduler is real, backed by a canned fetch adapter; clocks are pinned
to NOW.
"""
import pytest

from newsdesk.core.types import ValidationError
from newsdesk.models.news import Impact, RawItem
from newsdesk.models.quotes import QuoteEventType
from newsdesk.scheduler import NewsCache, RefreshScheduler
from newsdesk.service import MAX_SYMBOLS, NewsDeskService, parse_symbols

from conftest import NOW

CANNED = {
    "RELIANCE": [
        RawItem(title="Reliance wins record contract", source="Mint",
                published="Mon, 20 Oct 2025 09:00:00 GMT"),
        RawItem(title="Reliance wins record contract", source="Mint",
                published="Mon, 20 Oct 2025 09:00:00 GMT"),
    ],
    "TCS": [
        RawItem(title="Tata Consultancy faces tax probe", source="Reuters",
                published="Mon, 20 Oct 2025 09:10:00 GMT"),
    ],
    "HDFCBANK": [],
}


class CannedFetch:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self, query: str) -> list[RawItem]:
        self.calls += 1
        return CANNED.get(query.split()[0], [])


@pytest.fixture
def fetch():
    return CannedFetch()


@pytest.fixture
def service(fetch, price_cache, hub):
    async def no_sleep(delay):
        return None

    scheduler = RefreshScheduler(
        NewsCache(),
        fetch,
        ("RELIANCE", "TCS", "HDFCBANK"),
        clock=lambda: NOW,
        sleep=no_sleep,
    )
    return NewsDeskService(scheduler, price_cache, hub, clock=lambda: NOW)


class TestParseSymbols:
    def test_comma_string(self):
        assert parse_symbols("tcs, infy ,RELIANCE") == ("TCS", "INFY", "RELIANCE")

    def test_list(self):
        assert parse_symbols(["tcs", "INFY"]) == ("TCS", "INFY")

    def test_duplicates_removed_in_order(self):
        assert parse_symbols("TCS,INFY,tcs") == ("TCS", "INFY")

    @pytest.mark.parametrize("raw", [None, "", " , ,", []])
    def test_nothing_requested(self, raw):
        assert parse_symbols(raw) is None

    def test_special_characters_allowed(self):
        assert parse_symbols("M&M,BAJAJ-AUTO") == ("M&M", "BAJAJ-AUTO")

    @pytest.mark.parametrize("raw", ["TCS;DROP", "TC S", "-TCS", "A" * 40])
    def test_malformed_symbol(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_symbols(raw)
        assert exc_info.value.field == "symbols"

    @pytest.mark.parametrize("raw", [42, {"TCS": 1}, ["TCS", 7]])
    def test_wrong_type(self, raw):
        with pytest.raises(ValidationError):
            parse_symbols(raw)

    def test_too_many(self):
        raw = ",".join(f"S{i}" for i in range(MAX_SYMBOLS + 1))
        with pytest.raises(ValidationError):
            parse_symbols(raw)


class TestGetNews:
    async def test_default_is_tracked_symbols(self, service):
        news = await service.get_news()

        assert [n.symbol for n in news] == ["RELIANCE", "TCS", "HDFCBANK"]
        assert len(news[0].items) == 1
        assert news[0].items[0].impact is Impact.POSITIVE
        assert news[2].items == ()

    async def test_requested_subset(self, service):
        news = await service.get_news("tcs")

        assert [n.symbol for n in news] == ["TCS"]
        assert news[0].items[0].impact is Impact.NEGATIVE

    async def test_untracked_symbol_has_empty_feed(self, service):
        news = await service.get_news(["INFY"])
        assert news[0].items == ()

    async def test_refresh_happens_once_within_interval(self, service, fetch):
        await service.get_news()
        await service.get_news()
        await service.get_calls()

        assert fetch.calls == 3

    async def test_malformed_symbols_raise(self, service):
        with pytest.raises(ValidationError):
            await service.get_news("BAD!")


class TestGetCalls:
    async def test_call_for_positive_priced_symbol(self, service, price_cache):
        price_cache.set_price("RELIANCE", 2500.0)
        price_cache.set_price("TCS", 4050.0)

        calls = await service.get_calls()

        assert [c.symbol for c in calls] == ["RELIANCE"]
        assert calls[0].buy_from == 2495.0
        assert calls[0].created_at == NOW

    async def test_no_price_no_call(self, service):
        assert await service.get_calls() == []

    async def test_filtered_to_requested_symbols(self, service, price_cache):
        price_cache.set_price("RELIANCE", 2500.0)

        assert await service.get_calls("TCS") == []


class TestGetPrice:
    async def test_known(self, service, price_cache):
        price_cache.set_price("TCS", 4050.0)
        assert service.get_price("tcs") == 4050.0

    async def test_unknown_is_none(self, service):
        assert service.get_price("INFY") is None

    @pytest.mark.parametrize("symbol", [None, "", "TCS,INFY", "BAD!"])
    async def test_requires_exactly_one_valid_symbol(self, service, symbol):
        with pytest.raises(ValidationError):
            service.get_price(symbol)


class TestSubscribePrices:
    async def test_filter_parsed(self, service, price_cache):
        price_cache.set_price("TCS", 1.0)
        price_cache.set_price("INFY", 2.0)

        async with service.subscribe_prices("tcs") as sub:
            snapshot = await sub.pull(timeout=1)

        assert snapshot.type is QuoteEventType.SNAPSHOT
        assert dict(snapshot.prices) == {"TCS": 1.0}

    async def test_no_filter_gets_everything(self, service, price_cache):
        price_cache.set_price("TCS", 1.0)

        async with service.subscribe_prices() as sub:
            assert sub.symbols is None

    async def test_malformed_filter_rejected(self, service, hub):
        with pytest.raises(ValidationError):
            service.subscribe_prices("no good")
        assert hub.subscriber_count == 0


async def test_health(service):
    assert service.health() == {"ok": True, "at": NOW.isoformat()}
