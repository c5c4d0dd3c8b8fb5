"""Finnhub market data provider for watchlist enrichment."""
import asyncio
import os
import time
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from stock_watchlist.observability import record_enrichment_failure
from stock_watchlist.providers.core import (MarketDataProviderABC,
                                            format_change_percent,
                                            format_market_cap,
                                            format_pe_ratio, format_price,
                                            normalize_stock_symbol)
from stock_watchlist.providers.finnhub.cache import TTLResponseCache
from stock_watchlist.providers.finnhub.models import (FinnhubMetrics,
                                                      FinnhubProfile,
                                                      FinnhubQuote,
                                                      FinnhubSearchHit,
                                                      FinnhubSearchResponse)
from stock_watchlist.schemas import (NOT_AVAILABLE, MarketSnapshot,
                                     StockSearchResult)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Finnhub reports market capitalization in millions of USD.
MARKET_CAP_UNIT = 1_000_000

# Shown when the search box is empty.
POPULAR_STOCK_SYMBOLS = (
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "NFLX", "ORCL", "CRM",
    "ADBE", "INTC", "AMD", "PYPL", "UBER", "DIS", "JPM", "V", "WMT", "KO",
)
POPULAR_STOCK_COUNT = 10
MAX_SEARCH_RESULTS = 15


class FinnhubProvider(MarketDataProviderABC):
    """Market data provider for US stocks via the Finnhub REST API.

    Each snapshot is assembled from three independent requests (quote,
    company profile, fundamentals) issued concurrently. A failed request only
    blanks the figures it supplies. Successful responses are cached per
    endpoint: quotes briefly, profile and fundamentals for an hour.

    Without an API token no request is made and every snapshot is empty.
    """

    BASE_URL = "https://finnhub.io/api/v1"
    QUOTE_TTL_SECONDS = 120.0
    FUNDAMENTALS_TTL_SECONDS = 3600.0
    SEARCH_TTL_SECONDS = 1800.0

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the Finnhub provider.

        Args:
            api_key: Finnhub API token. Defaults to FINNHUB_API_KEY env var.
            base_url: API root. Defaults to BASE_URL.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
            clock: Time source for cache expiry.
        """
        if api_key is None:
            api_key = (
                os.getenv("FINNHUB_API_KEY")
                or os.getenv("NEXT_PUBLIC_FINNHUB_API_KEY")
                or ""
            )
        self._api_key = api_key.strip()
        self._cache = TTLResponseCache(clock=clock)
        self._client = httpx.AsyncClient(
            base_url=base_url or self.BASE_URL,
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        """Whether an API token is available."""
        return bool(self._api_key)

    async def get_quote(self, symbol: str) -> FinnhubQuote:
        """Fetch current price and day change for a symbol."""
        return await self._get_model(
            FinnhubQuote, "/quote", {"symbol": symbol}, self.QUOTE_TTL_SECONDS
        )

    async def get_profile(self, symbol: str) -> FinnhubProfile:
        """Fetch the company profile (market capitalization)."""
        return await self._get_model(
            FinnhubProfile,
            "/stock/profile2",
            {"symbol": symbol},
            self.FUNDAMENTALS_TTL_SECONDS,
        )

    async def get_metrics(self, symbol: str) -> FinnhubMetrics:
        """Fetch basic fundamentals (P/E ratios among others)."""
        return await self._get_model(
            FinnhubMetrics,
            "/stock/metric",
            {"symbol": symbol, "metric": "all"},
            self.FUNDAMENTALS_TTL_SECONDS,
        )

    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        """Fetch quote, profile and fundamentals concurrently and merge them.

        Waits for all three requests to settle; each failure only affects the
        figures derived from that request.
        """
        if not self.configured:
            return MarketSnapshot.default()

        sym = normalize_stock_symbol(symbol)
        quote, profile, metrics = await asyncio.gather(
            self.get_quote(sym),
            self.get_profile(sym),
            self.get_metrics(sym),
            return_exceptions=True,
        )
        return build_snapshot(
            _settled(quote, "quote", sym),
            _settled(profile, "profile", sym),
            _settled(metrics, "metric", sym),
        )

    async def search_stocks(self, query: str | None = None) -> list[StockSearchResult]:
        """Search US symbols via /search; a blank query lists popular stocks.

        Failures are logged and counted, and yield an empty list.
        """
        if not self.configured:
            return []

        term = (query or "").strip()
        if not term:
            return await self._popular_stocks()
        try:
            response = await self._get_model(
                FinnhubSearchResponse, "/search", {"q": term}, self.SEARCH_TTL_SECONDS
            )
        except (httpx.HTTPError, ValueError) as exc:
            record_enrichment_failure("search", term, exc)
            return []
        hits = [hit for hit in response.result if hit.symbol.strip()]
        return [_search_result(hit) for hit in hits[:MAX_SEARCH_RESULTS]]

    async def _popular_stocks(self) -> list[StockSearchResult]:
        """Profiles of the popular symbols; symbols whose profile fails are skipped."""
        symbols = POPULAR_STOCK_SYMBOLS[:POPULAR_STOCK_COUNT]
        profiles = await asyncio.gather(
            *(self.get_profile(sym) for sym in symbols), return_exceptions=True
        )
        results: list[StockSearchResult] = []
        for sym, outcome in zip(symbols, profiles):
            profile = _settled(outcome, "search", sym)
            if profile is None:
                continue
            results.append(
                StockSearchResult(
                    symbol=(profile.ticker or sym).upper(),
                    name=profile.name or sym,
                    exchange=profile.exchange or "US",
                    type="Common Stock",
                )
            )
        return results

    async def refresh(self) -> None:
        """Drop cached responses so the next lookups hit the API."""
        self._cache.clear()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _get_model(
        self,
        model: type[ModelT],
        path: str,
        params: dict[str, str],
        ttl_seconds: float,
    ) -> ModelT:
        """GET path with params (plus token), decode into model, cache on success."""
        key = _cache_key(path, params)
        data = self._cache.get(key)
        if data is None:
            response = await self._client.get(
                path, params=params | {"token": self._api_key}
            )
            response.raise_for_status()
            data = response.json()
            result = model.model_validate(data)
            self._cache.set(key, data, ttl_seconds)
            return result
        return model.model_validate(data)


def _cache_key(path: str, params: dict[str, str]) -> str:
    query = "&".join(f"{k}={v}" for k, v in sorted(params.items()))
    return f"{path}?{query}"


def _settled(result: Any, endpoint: str, symbol: str) -> Any | None:
    """Unwrap an asyncio.gather(return_exceptions=True) outcome; failures become None."""
    if isinstance(result, BaseException):
        record_enrichment_failure(endpoint, symbol, result)
        return None
    return result


def build_snapshot(
    quote: FinnhubQuote | None,
    profile: FinnhubProfile | None,
    metrics: FinnhubMetrics | None,
) -> MarketSnapshot:
    """Derive display figures from whichever responses are available."""
    current_price = quote.current_price if quote else None
    change_percent = quote.change_percent if quote else None
    market_cap = profile.market_capitalization if profile else None

    return MarketSnapshot(
        current_price=current_price,
        change_percent=change_percent,
        price_formatted=(
            format_price(current_price) if current_price is not None else None
        ),
        change_formatted=format_change_percent(change_percent),
        market_cap=(
            format_market_cap(market_cap * MARKET_CAP_UNIT)
            if market_cap
            else NOT_AVAILABLE
        ),
        pe_ratio=format_pe_ratio(metrics.metric if metrics else None),
    )


def _search_result(hit: FinnhubSearchHit) -> StockSearchResult:
    symbol = hit.symbol.strip().upper()
    return StockSearchResult(
        symbol=symbol,
        name=hit.description or symbol,
        exchange=hit.display_symbol or "US",
        type=hit.type or "Stock",
    )
