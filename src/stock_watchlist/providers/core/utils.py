"""Shared utilities for market data providers: normalization and display formatting."""
import math
from collections.abc import Mapping
from typing import Any

from stock_watchlist.schemas import NOT_AVAILABLE

DECIMALS = 2

# Finnhub metric fields tried in order for the P/E ratio.
PE_RATIO_FIELDS = ("peBasicExclExtraTTM", "peNormalizedAnnual")

_MAGNITUDES = ((1e12, "T"), (1e9, "B"), (1e6, "M"))


def normalize_stock_symbol(symbol: str) -> str:
    """Normalize a stock symbol (trimmed, uppercase)."""
    return symbol.strip().upper()


def _is_real(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def format_price(price: float) -> str:
    """Format a USD price, e.g. 1234.5 -> "$1,234.50"."""
    if price < 0:
        return f"-${abs(price):,.{DECIMALS}f}"
    return f"${price:,.{DECIMALS}f}"


def format_change_percent(change: float | None) -> str | None:
    """Format a percent change with explicit sign; None for missing or zero change."""
    if not change or not _is_real(change):
        return None
    sign = "+" if change > 0 else ""
    return f"{sign}{change:.{DECIMALS}f}%"


def format_market_cap(value: float | None) -> str:
    """Format a market cap in USD with a magnitude suffix, e.g. 1.5e6 -> "$1.50M"."""
    if not _is_real(value) or value <= 0:
        return NOT_AVAILABLE
    for threshold, suffix in _MAGNITUDES:
        if value >= threshold:
            return f"${value / threshold:.{DECIMALS}f}{suffix}"
    return f"${value:.{DECIMALS}f}"


def format_pe_ratio(metric: Mapping[str, Any] | None) -> str:
    """Format the first available P/E field to two decimals, or N/A."""
    if not metric:
        return NOT_AVAILABLE
    raw = next(
        (metric[field] for field in PE_RATIO_FIELDS if metric.get(field) is not None),
        None,
    )
    if not _is_real(raw):
        return NOT_AVAILABLE
    return f"{raw:.{DECIMALS}f}"
