"""Identity resolution: map an authenticated session to a durable user id."""
import asyncio

from sqlmodel import select

from stock_watchlist.db import Database, User
from stock_watchlist.exceptions import AccountNotFound, Unauthorized
from stock_watchlist.schemas import ResolvedUser, SessionIdentity


def preferred_user_key(account_id: str | None, storage_id: int | None) -> str:
    """Pick the id watchlist rows reference: account id, else stringified storage key."""
    if account_id and account_id.strip():
        return account_id.strip()
    return str(storage_id) if storage_id is not None else ""


class IdentityResolver:
    """Resolves the session's email against the stored user record.

    The stored record wins over the session's own id: sessions may carry a
    transient id, while watchlist rows must reference the durable one.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def lookup_user_key(self, email: str) -> str:
        """Return the preferred key of the user with this email, or "" if none."""
        with self._db.session() as session:
            row = session.exec(
                select(User.account_id, User.id).where(User.email == email)
            ).first()
        if row is None:
            return ""
        account_id, storage_id = row
        return preferred_user_key(account_id, storage_id)

    async def resolve_user_id(self, session: SessionIdentity | None) -> ResolvedUser:
        """Resolve the session to (user_id, email).

        Raises:
            Unauthorized: No session, or the session has no email.
            AccountNotFound: Neither the stored record nor the session has an id.
        """
        email = (session.email or "").strip() if session else ""
        if not email:
            raise Unauthorized()

        user_id = await asyncio.to_thread(self.lookup_user_key, email)
        if not user_id:
            user_id = (session.id or "").strip()
        if not user_id:
            raise AccountNotFound()
        return ResolvedUser(user_id=user_id, email=email)
