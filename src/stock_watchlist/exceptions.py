"""Domain exceptions for watchlist operations.

Each exception carries a fixed user-facing message. The underlying cause is
chained (``raise ... from exc``) and logged, never put in the message.
"""


class WatchlistError(Exception):
    """Base class for watchlist failures surfaced to callers."""

    message = "Watchlist error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class Unauthorized(WatchlistError):
    """No session, or the session carries no email."""

    message = "Unauthorized"


class AccountNotFound(WatchlistError):
    """Neither the user record nor the session yields a user id."""

    message = "User account not found"


class AddFailed(WatchlistError):
    message = "Failed to add to watchlist"


class RemoveFailed(WatchlistError):
    message = "Failed to remove from watchlist"


class LoadFailed(WatchlistError):
    message = "Failed to load watchlist"
