"""Database models for the watchlist service.

Only identity and watchlist rows are persisted. Market data is fetched on
demand from Finnhub and never stored.
"""
from datetime import datetime, timezone

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """User account record, written by the auth subsystem.

    ``id`` is the storage key; ``account_id`` is the id the auth subsystem
    issues and, when present, is what watchlist rows reference.
    """

    id: int | None = Field(default=None, primary_key=True)
    account_id: str | None = Field(default=None, index=True)
    email: str = Field(unique=True, index=True)
    name: str | None = None
    country: str | None = None
    created_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True)
    )


class WatchlistEntry(SQLModel, table=True):
    """A ticker a user follows. At most one row per (user_id, symbol)."""

    __tablename__ = "watchlist"  # type: ignore[assignment]
    __table_args__ = (
        UniqueConstraint("user_id", "symbol", name="uq_watchlist_user_symbol"),
    )

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    symbol: str  # uppercase ticker, e.g. AAPL
    company: str
    added_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True), index=True
    )
