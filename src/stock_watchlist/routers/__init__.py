"""API routers.

Includes routes for:
- /watchlist - The signed-in user's watchlist, enriched with market data
- /stocks - Symbol search and market data cache refresh
"""
from stock_watchlist.routers.stocks import router as stocks_router
from stock_watchlist.routers.watchlist import router as watchlist_router

__all__ = ["stocks_router", "watchlist_router"]
