"""Abstract base class for market data providers."""
from abc import ABC, abstractmethod

from stock_watchlist.schemas import MarketSnapshot, StockSearchResult


class MarketDataProviderABC(ABC):
    """Base interface for market data providers used to enrich watchlists.

    Implementations must not raise from fetch_market_data for upstream
    failures; a figure that cannot be fetched is reported as missing.
    """

    @abstractmethod
    async def fetch_market_data(self, symbol: str) -> MarketSnapshot:
        """Fetch the current market figures for a symbol.

        Args:
            symbol: Stock ticker (e.g., "AAPL").

        Returns:
            A MarketSnapshot; figures that could not be fetched are None or "N/A".
        """

    @abstractmethod
    async def refresh(self) -> None:
        """Force refresh of cached data.

        Use this to drop cached responses so the next lookups hit the upstream API.
        """

    async def search_stocks(self, query: str | None = None) -> list[StockSearchResult]:
        """Search symbols by ticker or company name.

        Default implementation raises NotImplementedError. Override in providers
        that support symbol search.

        Args:
            query: Free-text query; blank returns a default list of popular stocks.

        Returns:
            Matching stocks, with is_in_watchlist left False.
        """
        raise NotImplementedError("Symbol search is not supported by this provider")

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "MarketDataProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
