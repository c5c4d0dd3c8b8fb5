"""Stock lookup routes backing the add-to-watchlist search box."""
from fastapi import APIRouter, Query

from stock_watchlist.deps import CurrentSession, WatchlistServiceDep
from stock_watchlist.schemas import StockSearchResult

router = APIRouter(prefix="/stocks", tags=["stocks"])


@router.get("/search", response_model=list[StockSearchResult])
async def search_stocks(
    service: WatchlistServiceDep,
    session: CurrentSession,
    q: str | None = Query(default=None, description="Ticker or company name"),
) -> list[StockSearchResult]:
    """Search stocks by ticker or name; without q, list popular stocks.

    Each result carries whether it is already in the caller's watchlist.
    Returns an empty list when the market data provider is unavailable.
    """
    return await service.search_stocks(session, q)


@router.post("/refresh")
async def refresh_market_data(service: WatchlistServiceDep) -> dict[str, str]:
    """Drop cached market data so the next requests hit the provider."""
    await service.refresh_market_data()
    return {"status": "refreshed"}
