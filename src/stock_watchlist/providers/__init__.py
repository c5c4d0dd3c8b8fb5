"""Market data providers used to enrich watchlists.

- FinnhubProvider: quotes, company profiles and fundamentals via Finnhub

Providers implement MarketDataProviderABC and return MarketSnapshot objects.

Example:
    async with FinnhubProvider(api_key="...") as provider:
        snapshot = await provider.fetch_market_data("AAPL")
        print(f"AAPL: {snapshot.price_formatted} ({snapshot.market_cap})")
"""
from stock_watchlist.providers.core import MarketDataProviderABC
from stock_watchlist.providers.finnhub import FinnhubProvider

__all__ = [
    "FinnhubProvider",
    "MarketDataProviderABC",
]
