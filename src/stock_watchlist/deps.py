"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

No external DI container. Lifespan (main.py) creates the database, provider
and services once and attaches them to app.state; these getters are used by
Depends().
"""
from typing import Annotated

from fastapi import Depends, Request

from stock_watchlist.auth import SessionReaderABC
from stock_watchlist.schemas import SessionIdentity
from stock_watchlist.services import WatchlistService


def get_watchlist_service(request: Request) -> WatchlistService:
    """Resolve WatchlistService from app.state (created at startup)."""
    return request.app.state.watchlist_service


def get_session_reader(request: Request) -> SessionReaderABC:
    """Resolve the session reader from app.state."""
    return request.app.state.session_reader


async def get_current_session(
    request: Request,
    reader: Annotated[SessionReaderABC, Depends(get_session_reader)],
) -> SessionIdentity | None:
    """Session of the current request; None when unauthenticated."""
    return await reader.get_session(request.headers)


# Type aliases for route injection
WatchlistServiceDep = Annotated[WatchlistService, Depends(get_watchlist_service)]
CurrentSession = Annotated[SessionIdentity | None, Depends(get_current_session)]
