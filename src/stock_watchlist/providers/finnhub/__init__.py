"""Finnhub market data provider."""
from stock_watchlist.providers.finnhub.cache import TTLResponseCache
from stock_watchlist.providers.finnhub.finnhub_provider import (
    FinnhubProvider, build_snapshot)

__all__ = ["FinnhubProvider", "TTLResponseCache", "build_snapshot"]
