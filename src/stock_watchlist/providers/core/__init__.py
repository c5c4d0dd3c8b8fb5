"""Core provider abstractions."""
from stock_watchlist.providers.core.market_provider_abc import \
    MarketDataProviderABC
from stock_watchlist.providers.core.utils import (format_change_percent,
                                                  format_market_cap,
                                                  format_pe_ratio,
                                                  format_price,
                                                  normalize_stock_symbol)

__all__ = [
    "MarketDataProviderABC",
    "format_change_percent",
    "format_market_cap",
    "format_pe_ratio",
    "format_price",
    "normalize_stock_symbol",
]
