import asyncio

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError

from stock_watchlist.exceptions import (AccountNotFound, AddFailed,
                                        LoadFailed, Unauthorized)
from stock_watchlist.providers.core import MarketDataProviderABC
from stock_watchlist.schemas import MarketSnapshot, SessionIdentity
from stock_watchlist.services import (IdentityResolver, WatchlistService,
                                      WatchlistStore)


def make_service(database, market_data, **kwargs):
    return WatchlistService(
        IdentityResolver(database),
        WatchlistStore(database),
        market_data,
        **kwargs,
    )


@pytest.fixture
def service(database, fake_market_data):
    return make_service(database, fake_market_data)


def test_add_then_check_membership_is_case_insensitive(service, alice):
    async def scenario():
        await service.add_to_watchlist(alice, "aapl", "Apple")
        return (
            await service.is_symbol_in_watchlist(alice, "AAPL"),
            await service.get_watchlist_symbols(alice),
        )

    in_watchlist, symbols = asyncio.run(scenario())

    assert in_watchlist is True
    assert symbols == ["AAPL"]


def test_rows_are_keyed_by_stored_account_id(service, database, alice):
    asyncio.run(service.add_to_watchlist(alice, "AAPL", "Apple"))

    assert WatchlistStore(database).list_symbols("acct-alice") == ["AAPL"]
    assert WatchlistStore(database).list_symbols("session-alice") == []


def test_watchlist_with_data_is_enriched_in_store_order(service, alice, fake_market_data):
    async def scenario():
        for symbol in ("A", "B", "C"):
            await service.add_to_watchlist(alice, symbol, f"{symbol} Corp")
        return await service.get_watchlist_with_data(alice)

    rows = asyncio.run(scenario())

    assert [r.symbol for r in rows] == ["C", "B", "A"]
    assert all(r.user_id == "acct-alice" for r in rows)
    assert rows[0].company == "C Corp"
    assert rows[0].price_formatted == "$100.00"
    assert rows[0].pe_ratio == "12.35"
    assert sorted(fake_market_data.calls) == ["A", "B", "C"]


def test_one_failing_symbol_does_not_break_the_list(database, alice, fake_market_data):
    fake_market_data.failing = {"B"}
    service = make_service(database, fake_market_data)
    before = (
        REGISTRY.get_sample_value(
            "watchlist_enrichment_degraded_total", {"endpoint": "row"}
        )
        or 0.0
    )

    async def scenario():
        for symbol in ("A", "B", "C"):
            await service.add_to_watchlist(alice, symbol, symbol)
        return await service.get_watchlist_with_data(alice)

    rows = {r.symbol: r for r in asyncio.run(scenario())}

    assert set(rows) == {"A", "B", "C"}
    assert rows["A"].current_price == 100.0
    assert rows["C"].market_cap == "$1.50M"
    failed = rows["B"]
    assert failed.company == "B"
    assert failed.current_price is None
    assert failed.change_percent is None
    assert failed.price_formatted is None
    assert failed.market_cap == "N/A"
    assert failed.pe_ratio == "N/A"
    assert (
        REGISTRY.get_sample_value(
            "watchlist_enrichment_degraded_total", {"endpoint": "row"}
        )
        == before + 1
    )


class CountingMarketData(MarketDataProviderABC):
    """Tracks how many fetches run at the same time."""

    def __init__(self) -> None:
        self.active = 0
        self.peak = 0

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return MarketSnapshot.default()

    async def refresh(self) -> None:
        pass


def test_enrichment_fan_out_is_bounded(database, alice):
    market_data = CountingMarketData()
    service = make_service(database, market_data, max_concurrency=2)

    async def scenario():
        for i in range(6):
            await service.add_to_watchlist(alice, f"SYM{i}", "")
        return await service.get_watchlist_with_data(alice)

    rows = asyncio.run(scenario())

    assert len(rows) == 6
    assert market_data.peak == 2


def test_empty_watchlist(service, alice, fake_market_data):
    assert asyncio.run(service.get_watchlist_with_data(alice)) == []
    assert fake_market_data.calls == []


def test_remove_is_idempotent(service, alice):
    async def scenario():
        await service.add_to_watchlist(alice, "AAPL", "Apple")
        first = await service.remove_from_watchlist(alice, "aapl")
        second = await service.remove_from_watchlist(alice, "AAPL")
        return first, second, await service.get_watchlist_symbols(alice)

    first, second, symbols = asyncio.run(scenario())

    assert first.success and second.success
    assert symbols == []


def test_reads_degrade_when_unauthenticated(service):
    assert asyncio.run(service.get_watchlist_symbols(None)) == []
    assert asyncio.run(service.is_symbol_in_watchlist(None, "AAPL")) is False
    assert asyncio.run(service.is_symbol_in_watchlist(SessionIdentity(), "")) is False


def test_mutations_and_listing_require_a_session(service):
    with pytest.raises(Unauthorized):
        asyncio.run(service.add_to_watchlist(None, "AAPL", "Apple"))
    with pytest.raises(Unauthorized):
        asyncio.run(service.remove_from_watchlist(SessionIdentity(id="x"), "AAPL"))
    with pytest.raises(Unauthorized):
        asyncio.run(service.get_watchlist_with_data(None))


def test_account_not_found_surfaces(service):
    with pytest.raises(AccountNotFound):
        asyncio.run(service.get_watchlist_with_data(SessionIdentity(email="x@y.z")))


def test_blank_symbol_is_rejected(service, alice):
    with pytest.raises(ValueError, match="Symbol is required"):
        asyncio.run(service.add_to_watchlist(alice, "  ", "Apple"))
    with pytest.raises(ValueError):
        asyncio.run(service.remove_from_watchlist(alice, ""))


def test_storage_failure_during_identity_lookup(database, fake_market_data, alice, monkeypatch):
    service = make_service(database, fake_market_data)

    def fail():
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(database, "session", fail)

    with pytest.raises(LoadFailed):
        asyncio.run(service.get_watchlist_with_data(alice))
    with pytest.raises(AddFailed):
        asyncio.run(service.add_to_watchlist(alice, "AAPL", "Apple"))
    assert asyncio.run(service.get_watchlist_symbols(alice)) == []


def test_symbols_by_email(service, alice):
    asyncio.run(service.add_to_watchlist(alice, "TSLA", "Tesla"))

    assert asyncio.run(service.get_watchlist_symbols_by_email("alice@example.com")) == [
        "TSLA"
    ]


class StaggeredMarketData(MarketDataProviderABC):
    """Rows listed first take longest, so fetches finish in reverse order."""

    def __init__(self, delays: dict[str, float]) -> None:
        self.delays = delays
        self.finished: list[str] = []

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        await asyncio.sleep(self.delays[symbol])
        self.finished.append(symbol)
        return MarketSnapshot(current_price=self.delays[symbol])

    async def refresh(self) -> None:
        pass


def test_enriched_rows_keep_store_order_when_fetches_finish_out_of_order(database, alice):
    # list_all returns D, C, B, A; D sleeps longest and finishes last.
    market_data = StaggeredMarketData({"A": 0.0, "B": 0.01, "C": 0.02, "D": 0.03})
    service = make_service(database, market_data)

    async def scenario():
        for symbol in ("A", "B", "C", "D"):
            await service.add_to_watchlist(alice, symbol, symbol)
        return await service.get_watchlist_with_data(alice)

    rows = asyncio.run(scenario())

    stored = [e.symbol for e in WatchlistStore(database).list_all("acct-alice")]
    assert market_data.finished == ["A", "B", "C", "D"]
    assert [r.symbol for r in rows] == stored == ["D", "C", "B", "A"]
    assert [r.current_price for r in rows] == [0.03, 0.02, 0.01, 0.0]


def test_search_flags_symbols_in_watchlist(service, alice):
    async def scenario():
        await service.add_to_watchlist(alice, "msft", "Microsoft")
        return await service.search_stocks(alice, "micro")

    results = asyncio.run(scenario())

    assert [(r.symbol, r.is_in_watchlist) for r in results] == [
        ("AAPL", False),
        ("MSFT", True),
    ]


def test_search_without_session_flags_nothing(service):
    results = asyncio.run(service.search_stocks(None, None))

    assert [r.symbol for r in results] == ["AAPL", "MSFT"]
    assert not any(r.is_in_watchlist for r in results)


def test_search_is_empty_when_provider_cannot_search(database, alice):
    service = make_service(database, CountingMarketData())

    assert asyncio.run(service.search_stocks(alice, "apple")) == []


def test_refresh_market_data_delegates_to_provider(service, fake_market_data):
    asyncio.run(service.refresh_market_data())

    assert fake_market_data.refreshes == 1
