"""Watchlist service: the operations the UI calls, plus market data enrichment.

Identity resolution and the full listing are prerequisites: when they fail the
request fails. Enrichment is best effort: each row is enriched independently
and a row whose market data cannot be fetched is returned with default
figures.
"""
import asyncio
import logging

from stock_watchlist.db import DATABASE_EXCEPTIONS, WatchlistEntry
from stock_watchlist.exceptions import (AddFailed, LoadFailed, RemoveFailed,
                                        WatchlistError)
from stock_watchlist.observability import record_enrichment_failure
from stock_watchlist.providers.core import MarketDataProviderABC
from stock_watchlist.schemas import (EnrichedWatchlistEntry, MutationResult,
                                     ResolvedUser, SessionIdentity,
                                     StockSearchResult)
from stock_watchlist.services.identity import IdentityResolver
from stock_watchlist.services.watchlist_store import WatchlistStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


class WatchlistService:
    """Request-scoped watchlist operations over shared store and provider."""

    def __init__(
        self,
        identity: IdentityResolver,
        store: WatchlistStore,
        market_data: MarketDataProviderABC,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        """Initialize with collaborators.

        Args:
            identity: Resolves sessions to user ids.
            store: Watchlist persistence.
            market_data: Provider used to enrich rows.
            max_concurrency: Upper bound on rows enriched at the same time.
        """
        self._identity = identity
        self._store = store
        self._market_data = market_data
        self._max_concurrency = max(1, max_concurrency)

    async def get_watchlist_symbols(self, session: SessionIdentity | None) -> list[str]:
        """Symbols in the user's watchlist. Never raises; [] when anything fails."""
        try:
            user = await self._identity.resolve_user_id(session)
        except (WatchlistError, *DATABASE_EXCEPTIONS) as exc:
            logger.warning("get_watchlist_symbols: %s: %s", type(exc).__name__, exc)
            return []
        return await asyncio.to_thread(self._store.list_symbols, user.user_id)

    async def get_watchlist_symbols_by_email(self, email: str) -> list[str]:
        """Symbols in the watchlist of the user registered with email."""
        return await asyncio.to_thread(self._store.list_symbols_for_email, email)

    async def is_symbol_in_watchlist(
        self, session: SessionIdentity | None, symbol: str
    ) -> bool:
        """Whether symbol is in the user's watchlist. Never raises."""
        if not symbol or not symbol.strip():
            return False
        try:
            user = await self._identity.resolve_user_id(session)
        except (WatchlistError, *DATABASE_EXCEPTIONS) as exc:
            logger.warning("is_symbol_in_watchlist: %s: %s", type(exc).__name__, exc)
            return False
        return await asyncio.to_thread(self._store.exists, user.user_id, symbol)

    async def add_to_watchlist(
        self, session: SessionIdentity | None, symbol: str, company: str
    ) -> MutationResult:
        """Add symbol (or update its company name).

        Raises:
            ValueError: symbol is blank.
            Unauthorized, AccountNotFound: identity could not be resolved.
            AddFailed: storage failed.
        """
        if not symbol or not symbol.strip():
            raise ValueError("Symbol is required")
        user = await self._resolve(session, AddFailed)
        return await asyncio.to_thread(self._store.add, user.user_id, symbol, company)

    async def remove_from_watchlist(
        self, session: SessionIdentity | None, symbol: str
    ) -> MutationResult:
        """Remove symbol; succeeds when it was not in the watchlist.

        Raises:
            ValueError: symbol is blank.
            Unauthorized, AccountNotFound: identity could not be resolved.
            RemoveFailed: storage failed.
        """
        if not symbol or not symbol.strip():
            raise ValueError("Symbol is required")
        user = await self._resolve(session, RemoveFailed)
        return await asyncio.to_thread(self._store.remove, user.user_id, symbol)

    async def get_watchlist_with_data(
        self, session: SessionIdentity | None
    ) -> list[EnrichedWatchlistEntry]:
        """The user's watchlist, most recent first, with live market data.

        Raises:
            Unauthorized, AccountNotFound: identity could not be resolved.
            LoadFailed: the watchlist could not be read.
        """
        user = await self._resolve(session, LoadFailed)
        entries = await asyncio.to_thread(self._store.list_all, user.user_id)

        semaphore = asyncio.Semaphore(self._max_concurrency)
        enriched = await asyncio.gather(
            *(self._enrich(user, entry, semaphore) for entry in entries)
        )
        return list(enriched)

    async def search_stocks(
        self, session: SessionIdentity | None, query: str | None
    ) -> list[StockSearchResult]:
        """Search symbols and flag those already in the user's watchlist.

        Never raises for upstream failures; an anonymous caller gets every
        result flagged as not in the watchlist.
        """
        try:
            results = await self._market_data.search_stocks(query)
        except NotImplementedError as exc:
            logger.warning("search_stocks: %s", exc)
            return []
        if not results:
            return []
        symbols = set(await self.get_watchlist_symbols(session)) if session else set()
        return [
            result.model_copy(update={"is_in_watchlist": result.symbol.upper() in symbols})
            for result in results
        ]

    async def refresh_market_data(self) -> None:
        """Drop cached market data so the next requests fetch fresh figures."""
        await self._market_data.refresh()

    async def _resolve(
        self,
        session: SessionIdentity | None,
        failure: type[WatchlistError],
    ) -> ResolvedUser:
        """Resolve identity; storage errors during lookup become failure()."""
        try:
            return await self._identity.resolve_user_id(session)
        except DATABASE_EXCEPTIONS as exc:
            logger.exception("Resolving user for watchlist failed")
            raise failure() from exc

    async def _enrich(
        self,
        user: ResolvedUser,
        entry: WatchlistEntry,
        semaphore: asyncio.Semaphore,
    ) -> EnrichedWatchlistEntry:
        """Merge market data into one row; any failure leaves the row unenriched."""
        symbol = entry.symbol.upper()
        base = EnrichedWatchlistEntry(
            user_id=user.user_id,
            symbol=symbol,
            company=entry.company,
            added_at=entry.added_at,
        )
        try:
            async with semaphore:
                snapshot = await self._market_data.fetch_market_data(symbol)
        except Exception as exc:  # pylint: disable=broad-except
            record_enrichment_failure("row", symbol, exc)
            return base
        return base.model_copy(update=snapshot.model_dump())
