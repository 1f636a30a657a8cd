"""
FastAPI application factory and entry point.

create_app() builds and configures the FastAPI application:
  1. Database — the connection pool, built here and stored on app.state
  2. Lifespan manager — creates tables, starts/stops the session reaper,
     disposes the pool on shutdown
  3. CORS middleware — allows frontend origins to make cross-origin requests
  4. Exception handlers — maps domain errors to HTTP responses
  5. Router registration — mounts the API endpoint groups

Running locally:
    uvicorn otpbank.main:app --reload

The --reload flag watches for file changes and restarts automatically,
which is ideal for development but should not be used in production.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from otpbank.config import Settings, settings as default_settings
from otpbank.database import Database
from otpbank.exceptions import register_exception_handlers
from otpbank.routers import accounts, auth
from otpbank.services.reaper import SessionReaper

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Configure root logging once for the whole process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
      Creates all database tables if they don't exist, then starts the
      session reaper. In production you'd manage the schema with
      migrations instead of create_all.

    Shutdown:
      Stops the reaper, then disposes of the database engine, closing all
      pooled connections cleanly.
    """
    database: Database = app.state.database
    reaper: SessionReaper = app.state.reaper

    # --- Startup ---
    await database.create_all()
    reaper.start()
    logger.info("%s %s started", app.title, app.version)
    yield
    # --- Shutdown ---
    await reaper.stop()
    await database.dispose()


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
) -> FastAPI:
    """
    Build a fully wired application.

    Args:
        settings: Configuration; defaults to the environment-loaded singleton.
        database: An already-built Database to use instead of one made from
            settings.DATABASE_URL (tests inject an in-memory one).
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    if database is None:
        database = Database(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Banking REST API with one-time-code sessions and a single balance per user",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.reaper = SessionReaper(
        database,
        ttl=timedelta(minutes=settings.SESSION_TTL_MINUTES),
        interval=settings.SESSION_SWEEP_INTERVAL_SECONDS,
    )

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------

    # CORS: Allow specified frontend origins to make requests.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    register_exception_handlers(app)

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(auth.router, tags=["Auth"])
    app.include_router(accounts.router, prefix="/me/account", tags=["Account"])

    # -----------------------------------------------------------------------
    # Health check
    # -----------------------------------------------------------------------

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint for deployment probes.

        Returns a simple JSON response indicating the service is running.
        """
        return {"status": "ok", "version": settings.APP_VERSION}

    return app


app = create_app()
