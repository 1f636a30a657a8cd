"""
Database engine, session management, and base model class.

This module sets up SQLAlchemy 2.0 with async support. Key components:

  - Base: Declarative base class that all ORM models inherit from
  - Database: Owns the async engine (the connection pool) and the session
    factory. One instance is built per application by create_app() and
    disposed when the application shuts down.
  - get_db(): FastAPI dependency that provides a session per request

Session lifecycle:
  Each API request gets its own session via get_db(). Writing routes
  commit once, before they return, and the session rolls back on any
  exception, so a request's writes land all together or not at all and
  the response never claims a write that was not saved. Failures of the store itself (lost connection,
  pool exhausted) are logged and re-raised as StoreUnavailableError so the
  client never sees driver error text.
"""

import logging

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from otpbank.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

# Driver-level failures that mean "the store is unreachable right now" rather
# than "this request is wrong". Retrying the request may succeed.
STORE_FAILURES = (OperationalError, InterfaceError, PoolTimeoutError)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Provides metadata tracking so Database.create_all() can build every
    table registered by the otpbank.models package.
    """
    pass


class Database:
    """
    The connection pool and session factory for one application instance.

    Args:
        url: SQLAlchemy async database URL.
        echo: Log every SQL statement (development only).
        pool_timeout: Seconds to wait for a free pooled connection. Ignored
            for SQLite, whose in-memory pool has no checkout queue.
    """

    def __init__(self, url: str, echo: bool = False, pool_timeout: float | None = None):
        engine_kwargs = {"echo": echo}
        if pool_timeout is not None and make_url(url).get_backend_name() != "sqlite":
            engine_kwargs["pool_timeout"] = pool_timeout

        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False prevents lazy-load errors after commit:
        # attribute access on a committed object would otherwise trigger a
        # synchronous refresh, which fails in async context.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def session(self) -> AsyncSession:
        """Open a new session. Use as ``async with database.session() as db:``."""
        return self.session_factory()

    async def create_all(self) -> None:
        """
        Create all tables that don't exist yet.

        A convenience for development and tests. A production deployment
        would manage the schema with migrations instead.
        """
        # Importing the package registers every model on Base.metadata
        import otpbank.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()


async def get_db(request: Request):
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.post("/me/account")
        async def get_balance(db: AsyncSession = Depends(get_db)):
            ...

    Routes that write commit the session themselves before building their
    response. Code after the yield only runs once the response is on the
    wire, so a commit there could no longer reach the client as an error.
    A failed commit raised inside the route comes back through the yield
    below and is answered as StoreUnavailableError like any other store
    failure. Work
    that was never committed is discarded when the session closes, and the
    session is rolled back on any exception.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        except STORE_FAILURES as exc:
            await session.rollback()
            logger.error(
                "Store call failed during %s %s",
                request.method,
                request.url.path,
                exc_info=exc,
            )
            raise StoreUnavailableError() from exc
        except Exception:
            await session.rollback()
            raise
