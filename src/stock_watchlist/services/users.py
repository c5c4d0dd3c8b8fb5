"""Users service: queries over user records owned by the auth subsystem."""
import logging

from sqlmodel import col, select

from stock_watchlist.db import DATABASE_EXCEPTIONS, Database, User
from stock_watchlist.schemas import NewsRecipient
from stock_watchlist.services.identity import preferred_user_key

logger = logging.getLogger(__name__)


class UsersService:
    """Read-only access to user records."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def get_all_users_for_news_delivery(self) -> list[NewsRecipient]:
        """Users with both an email and a name. [] if the query fails."""
        try:
            with self._db.session() as session:
                rows = session.exec(
                    select(User.id, User.account_id, User.email, User.name).where(
                        col(User.email).is_not(None)
                    )
                    .order_by(col(User.id))
                ).all()
        except DATABASE_EXCEPTIONS:
            logger.exception("Loading news recipients failed")
            return []
        return [
            NewsRecipient(
                id=preferred_user_key(account_id, storage_id),
                email=email,
                name=name,
            )
            for storage_id, account_id, email, name in rows
            if email and name
        ]
