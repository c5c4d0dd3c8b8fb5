"""Domain concept for mapping watchlist exceptions to HTTP responses."""
from dataclasses import dataclass

from fastapi import HTTPException

from stock_watchlist.exceptions import (AccountNotFound, Unauthorized,
                                        WatchlistError)


@dataclass(frozen=True)
class WatchlistErrorMapper:
    """Maps service exceptions to HTTP (status_code, detail).

    Details are the fixed user-facing messages; causes are never exposed.
    """

    resource_name: str = "Watchlist"

    def to_http(self, exc: Exception) -> tuple[int, str]:
        """Map a service exception to (status_code, detail).

        Args:
            exc: The exception raised by WatchlistService.

        Returns:
            (status_code, detail) suitable for HTTPException(status_code=..., detail=...).
        """
        if isinstance(exc, Unauthorized):
            return (401, str(exc))
        if isinstance(exc, AccountNotFound):
            return (404, str(exc))
        if isinstance(exc, WatchlistError):
            return (500, str(exc))
        if isinstance(exc, ValueError):
            return (400, str(exc) or f"Invalid {self.resource_name.lower()} request")
        return (500, "Internal server error")

    def raise_http(self, exc: Exception) -> None:
        """Map exception to HTTP and raise HTTPException. Never returns."""
        status_code, detail = self.to_http(exc)
        headers = {"WWW-Authenticate": "Session"} if status_code == 401 else None
        raise HTTPException(
            status_code=status_code, detail=detail, headers=headers
        ) from exc
