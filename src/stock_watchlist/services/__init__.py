"""Service layer: identity, persistence, enrichment and exception-to-HTTP mapping."""
from stock_watchlist.services.error_mapper import WatchlistErrorMapper
from stock_watchlist.services.identity import IdentityResolver
from stock_watchlist.services.users import UsersService
from stock_watchlist.services.watchlist_service import WatchlistService
from stock_watchlist.services.watchlist_store import WatchlistStore

__all__ = [
    "IdentityResolver",
    "UsersService",
    "WatchlistErrorMapper",
    "WatchlistService",
    "WatchlistStore",
]
