"""Main module for the stock watchlist service."""
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from stock_watchlist.auth import TrustedHeaderSessionReader
from stock_watchlist.db import Database
from stock_watchlist.providers import FinnhubProvider
from stock_watchlist.routers import stocks_router, watchlist_router
from stock_watchlist.services import (IdentityResolver, WatchlistService,
                                      WatchlistStore)
from stock_watchlist.settings import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create the database, provider and services at startup; release them on shutdown."""
    settings: Settings = fastapi_app.state.settings

    database = Database(settings.database_url, echo=settings.sql_echo)
    database.init()

    market_data = FinnhubProvider(
        api_key=settings.finnhub_api_key,
        base_url=settings.finnhub_base_url,
        timeout=settings.market_data_timeout,
    )
    if not market_data.configured:
        logger.warning("FINNHUB_API_KEY is not set; market data will be reported as N/A")

    fastapi_app.state.session_reader = TrustedHeaderSessionReader(
        user_id_header=settings.session_user_id_header,
        email_header=settings.session_email_header,
    )
    fastapi_app.state.watchlist_service = WatchlistService(
        IdentityResolver(database),
        WatchlistStore(database),
        market_data,
        max_concurrency=settings.enrichment_max_concurrency,
    )

    yield

    try:
        await market_data.close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing market data provider: %s", exc)
    database.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI app; settings default to the environment."""
    fastapi_app = FastAPI(
        title="Stock Watchlist",
        description="Per-user stock watchlists enriched with live market data",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.settings = settings or Settings.from_env()

    fastapi_app.include_router(watchlist_router)
    fastapi_app.include_router(stocks_router)
    fastapi_app.mount("/metrics", make_asgi_app())

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("stock_watchlist.main:app", host="127.0.0.1", port=8001)
