"""Persistence for watchlist entries, keyed by (user_id, symbol)."""
import logging

from sqlalchemy import delete
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.sql.dml import Insert
from sqlmodel import col, select

from stock_watchlist.db import (DATABASE_EXCEPTIONS, Database, WatchlistEntry,
                                utc_now)
from stock_watchlist.exceptions import AddFailed, LoadFailed, RemoveFailed
from stock_watchlist.observability import mask_email, record_store_read_failure
from stock_watchlist.providers.core import normalize_stock_symbol
from stock_watchlist.schemas import MutationResult
from stock_watchlist.services.identity import IdentityResolver

logger = logging.getLogger(__name__)


def upsert_statement(dialect: str, values: dict) -> Insert:
    """INSERT of one watchlist row that only updates company on (user_id, symbol) conflict.

    Raises:
        NotImplementedError: The dialect has no single-statement upsert here.
    """
    table = WatchlistEntry.__table__
    if dialect == "mysql":
        stmt = mysql.insert(table).values(**values)
        return stmt.on_duplicate_key_update(company=stmt.inserted.company)
    if dialect in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=["user_id", "symbol"],
            set_={"company": stmt.excluded.company},
        )
    raise NotImplementedError(f"Watchlist upsert is not supported on {dialect}")


class WatchlistStore:
    """CRUD over watchlist rows. The only writer of the watchlist table.

    Symbol listings used for badges degrade to empty results on failure;
    mutations and the full listing raise domain errors instead.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def list_symbols(self, user_id: str) -> list[str]:
        """Return the user's symbols (uppercase). Never raises; [] on failure."""
        try:
            with self._db.session() as session:
                symbols = session.exec(
                    select(WatchlistEntry.symbol).where(
                        WatchlistEntry.user_id == user_id
                    )
                ).all()
        except DATABASE_EXCEPTIONS as exc:
            record_store_read_failure("list_symbols", user_id, exc)
            return []
        return [str(s).upper() for s in symbols]

    def list_symbols_for_email(self, email: str) -> list[str]:
        """Return the symbols of the user registered with email; [] if unknown."""
        if not email or not email.strip():
            return []
        try:
            user_id = IdentityResolver(self._db).lookup_user_key(email.strip())
        except DATABASE_EXCEPTIONS as exc:
            record_store_read_failure("list_symbols_for_email", mask_email(email), exc)
            return []
        if not user_id:
            return []
        return self.list_symbols(user_id)

    def exists(self, user_id: str, symbol: str) -> bool:
        """Whether symbol is in the user's watchlist. False on failure."""
        normalized = normalize_stock_symbol(symbol)
        try:
            with self._db.session() as session:
                found = session.exec(
                    select(WatchlistEntry.id)
                    .where(WatchlistEntry.user_id == user_id)
                    .where(WatchlistEntry.symbol == normalized)
                    .limit(1)
                ).first()
        except DATABASE_EXCEPTIONS as exc:
            record_store_read_failure("exists", user_id, exc)
            return False
        return found is not None

    def add(self, user_id: str, symbol: str, company: str) -> MutationResult:
        """Insert the symbol, or update its company name if already present.

        user_id, symbol and added_at are written on insert only, so re-adding
        keeps the original added_at.

        Raises:
            AddFailed: The upsert failed.
        """
        normalized = normalize_stock_symbol(symbol)
        company_name = (company or "").strip() or normalized
        values = {
            "user_id": user_id,
            "symbol": normalized,
            "company": company_name,
            "added_at": utc_now(),
        }
        try:
            with self._db.session() as session:
                stmt = upsert_statement(self._db.dialect, values)
                session.connection().execute(stmt)
        except (*DATABASE_EXCEPTIONS, NotImplementedError) as exc:
            logger.exception("Adding %s to watchlist of %s failed", normalized, user_id)
            raise AddFailed() from exc
        return MutationResult(success=True)

    def remove(self, user_id: str, symbol: str) -> MutationResult:
        """Delete the symbol from the user's watchlist. Missing rows are not an error.

        Raises:
            RemoveFailed: The delete failed.
        """
        normalized = normalize_stock_symbol(symbol)
        try:
            with self._db.session() as session:
                session.connection().execute(
                    delete(WatchlistEntry.__table__)
                    .where(WatchlistEntry.__table__.c.user_id == user_id)
                    .where(WatchlistEntry.__table__.c.symbol == normalized)
                )
        except DATABASE_EXCEPTIONS as exc:
            logger.exception(
                "Removing %s from watchlist of %s failed", normalized, user_id
            )
            raise RemoveFailed() from exc
        return MutationResult(success=True)

    def list_all(self, user_id: str) -> list[WatchlistEntry]:
        """Return the user's entries, most recently added first.

        Ties on added_at are broken by row id, later inserts first.

        Raises:
            LoadFailed: The query failed.
        """
        try:
            with self._db.session() as session:
                return list(
                    session.exec(
                        select(WatchlistEntry)
                        .where(WatchlistEntry.user_id == user_id)
                        .order_by(
                            col(WatchlistEntry.added_at).desc(),
                            col(WatchlistEntry.id).desc(),
                        )
                    ).all()
                )
        except DATABASE_EXCEPTIONS as exc:
            logger.exception("Loading watchlist of %s failed", user_id)
            raise LoadFailed() from exc
