"""Pydantic schemas for API and runtime use. Not persisted to DB."""
from datetime import datetime

from pydantic import BaseModel, Field

NOT_AVAILABLE = "N/A"


class SessionIdentity(BaseModel):
    """User identity as reported by the auth subsystem. Read-only input."""

    id: str | None = None
    email: str | None = None


class ResolvedUser(BaseModel):
    """Durable user id that watchlist rows are keyed by."""

    user_id: str
    email: str


class MarketSnapshot(BaseModel):
    """Live market figures for one symbol; absent or N/A when unavailable."""

    current_price: float | None = None
    change_percent: float | None = None
    price_formatted: str | None = None
    change_formatted: str | None = None
    market_cap: str = NOT_AVAILABLE
    pe_ratio: str = NOT_AVAILABLE

    @classmethod
    def default(cls) -> "MarketSnapshot":
        """Snapshot with every figure missing."""
        return cls()


class EnrichedWatchlistEntry(MarketSnapshot):
    """Stored watchlist row merged with live market data. Rebuilt on every read."""

    user_id: str
    symbol: str
    company: str
    added_at: datetime


class AddWatchlistRequest(BaseModel):
    """Body for POST /watchlist."""

    symbol: str = Field(min_length=1)
    company: str = ""


class MutationResult(BaseModel):
    success: bool = True


class WatchlistMembership(BaseModel):
    symbol: str
    in_watchlist: bool


class NewsRecipient(BaseModel):
    """User that can receive the news digest."""

    id: str
    email: str
    name: str


class StockSearchResult(BaseModel):
    """One symbol-search hit, flagged with the caller's watchlist membership."""

    symbol: str
    name: str
    exchange: str
    type: str
    is_in_watchlist: bool = False


__all__ = [
    "NOT_AVAILABLE",
    "AddWatchlistRequest",
    "EnrichedWatchlistEntry",
    "MarketSnapshot",
    "MutationResult",
    "NewsRecipient",
    "ResolvedUser",
    "SessionIdentity",
    "StockSearchResult",
    "WatchlistMembership",
]
