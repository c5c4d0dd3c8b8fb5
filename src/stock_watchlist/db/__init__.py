"""Database package: models and engine lifecycle."""
from stock_watchlist.db.models import User, WatchlistEntry, utc_now
from stock_watchlist.db.sessions import DATABASE_EXCEPTIONS, Database

__all__ = ["DATABASE_EXCEPTIONS", "Database", "User", "WatchlistEntry", "utc_now"]
