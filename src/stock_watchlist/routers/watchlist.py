"""Watchlist routes for the signed-in user.

Handlers only call WatchlistService and map its exceptions to HTTP.
"""
from fastapi import APIRouter

from stock_watchlist.deps import CurrentSession, WatchlistServiceDep
from stock_watchlist.exceptions import WatchlistError
from stock_watchlist.schemas import (AddWatchlistRequest,
                                     EnrichedWatchlistEntry, MutationResult,
                                     WatchlistMembership)
from stock_watchlist.services import WatchlistErrorMapper

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

_errors = WatchlistErrorMapper()


@router.get("", response_model=list[EnrichedWatchlistEntry])
async def get_watchlist(
    service: WatchlistServiceDep, session: CurrentSession
) -> list[EnrichedWatchlistEntry]:
    """Get the watchlist with live market data, most recently added first.

    Rows whose market data is unavailable are still returned, with N/A figures.
    """
    try:
        return await service.get_watchlist_with_data(session)
    except WatchlistError as e:
        _errors.raise_http(e)


@router.get("/symbols", response_model=list[str])
async def get_watchlist_symbols(
    service: WatchlistServiceDep, session: CurrentSession
) -> list[str]:
    """Get the watchlist symbols only. Empty when the list cannot be read."""
    return await service.get_watchlist_symbols(session)


@router.get("/{symbol}/status", response_model=WatchlistMembership)
async def is_symbol_in_watchlist(
    symbol: str, service: WatchlistServiceDep, session: CurrentSession
) -> WatchlistMembership:
    """Check whether a symbol is in the watchlist.

    Args:
        symbol: Stock ticker (case-insensitive).
    """
    return WatchlistMembership(
        symbol=symbol.strip().upper(),
        in_watchlist=await service.is_symbol_in_watchlist(session, symbol),
    )


@router.post("", response_model=MutationResult)
async def add_to_watchlist(
    body: AddWatchlistRequest, service: WatchlistServiceDep, session: CurrentSession
) -> MutationResult:
    """Add a symbol; re-adding updates the company name and keeps added_at."""
    try:
        return await service.add_to_watchlist(session, body.symbol, body.company)
    except (WatchlistError, ValueError) as e:
        _errors.raise_http(e)


@router.delete("/{symbol}", response_model=MutationResult)
async def remove_from_watchlist(
    symbol: str, service: WatchlistServiceDep, session: CurrentSession
) -> MutationResult:
    """Remove a symbol. Removing a symbol that is not listed succeeds."""
    try:
        return await service.remove_from_watchlist(session, symbol)
    except (WatchlistError, ValueError) as e:
        _errors.raise_http(e)
