"""Database engine and session management."""
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from stock_watchlist.db.models import (  # noqa: F401  # pylint: disable=unused-import
    User, WatchlistEntry)

# Failures raised by the database driver or pool; callers decide whether to
# degrade or wrap them.
DATABASE_EXCEPTIONS: tuple[type[Exception], ...] = (SQLAlchemyError, OSError)


def _create_engine(url: str, echo: bool) -> Engine:
    if url.startswith("sqlite"):
        # In-memory SQLite needs one shared connection across threads.
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(
            url, echo=echo, connect_args={"check_same_thread": False}
        )
    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


class Database:
    """Owns the process-wide engine (connection pool).

    Construct once at startup, call init(), hand the instance to every
    component that needs storage, and call close() on shutdown.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not initialized; call init() first")
        return self._engine

    @property
    def dialect(self) -> str:
        """SQLAlchemy dialect name, e.g. "postgresql" or "sqlite"."""
        return self.engine.dialect.name

    def init(self, *, create_tables: bool = True) -> None:
        """Create the engine and, by default, any missing tables. Idempotent."""
        if self._engine is not None:
            return
        self._engine = _create_engine(self._url, self._echo)
        if create_tables:
            SQLModel.metadata.create_all(self._engine)

    def close(self) -> None:
        """Dispose of the pool. Safe to call more than once."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session; commits on success, rolls back on error."""
        # Rows are read after the session closes, so keep them loaded.
        session = Session(self.engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
