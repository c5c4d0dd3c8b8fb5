"""Shared pytest fixtures."""
import httpx
import pytest

from stock_watchlist.db import Database, User
from stock_watchlist.providers.core import MarketDataProviderABC
from stock_watchlist.schemas import (MarketSnapshot, SessionIdentity,
                                     StockSearchResult)


class FakeMarketData(MarketDataProviderABC):
    """Provider returning canned snapshots; symbols in ``failing`` raise."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []
        self.closed = False
        self.refreshes = 0

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        self.calls.append(symbol)
        if symbol in self.failing:
            raise httpx.ConnectError(f"upstream down for {symbol}")
        return MarketSnapshot(
            current_price=100.0,
            change_percent=1.5,
            price_formatted="$100.00",
            change_formatted="+1.50%",
            market_cap="$1.50M",
            pe_ratio="12.35",
        )

    async def refresh(self) -> None:
        self.refreshes += 1

    async def search_stocks(self, query: str | None = None) -> list[StockSearchResult]:
        return [
            StockSearchResult(symbol="AAPL", name="Apple Inc", exchange="AAPL", type="Common Stock"),
            StockSearchResult(symbol="MSFT", name="Microsoft Corp", exchange="MSFT", type="Common Stock"),
        ]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with tables created."""
    db = Database("sqlite://")
    db.init()
    yield db
    db.close()


def add_user(
    database: Database,
    email: str,
    *,
    account_id: str | None = None,
    name: str | None = None,
) -> User:
    with database.session() as session:
        user = User(email=email, account_id=account_id, name=name)
        session.add(user)
        session.flush()
        session.refresh(user)
        return user


@pytest.fixture
def alice(database) -> SessionIdentity:
    """Signed-in user with a stored record carrying an account id."""
    add_user(database, "alice@example.com", account_id="acct-alice", name="Alice")
    return SessionIdentity(id="session-alice", email="alice@example.com")


@pytest.fixture
def fake_market_data() -> FakeMarketData:
    return FakeMarketData()


@pytest.fixture
def make_user(database):
    """Factory storing a user record in the test database."""

    def _make(email: str, **kwargs) -> User:
        return add_user(database, email, **kwargs)

    return _make
