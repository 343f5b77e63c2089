"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Collaborators (the Database, the realtime Broadcaster) are
built here and stored on app.state, so tests can pass their own
Database in. Lifespan owns the outbound HTTP client and the engine's
dispose() at shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from folio import __version__
from folio.api import api_router
from folio.config import settings
from folio.db.engine import Database
from folio.middleware.request_id import RequestIdMiddleware
from folio.middleware.security import SecurityHeadersMiddleware
from folio.realtime.broadcaster import Broadcaster
from folio.realtime.collections import default_collections

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "folio.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    database: Database = app.state.database
    if settings.auto_create_schema:
        await database.create_all()
        logger.info("folio.schema_created")

    app.state.http_client = httpx.AsyncClient(timeout=30.0)

    yield

    # Shutdown
    logger.info("folio.shutdown")
    await app.state.http_client.aclose()
    app.state.http_client = None
    await database.dispose()


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Folio",
        description="Portfolio site backend — content API, admin CRUD, realtime updates",
        version=__version__,
        lifespan=lifespan,
    )

    database = database or Database.from_settings(settings)
    app.state.database = database
    app.state.http_client = None
    app.state.broadcaster = Broadcaster(
        default_collections(database),
        poll_interval=settings.realtime_poll_interval,
        fetch_timeout_ms=settings.realtime_fetch_timeout_ms,
        error_threshold=settings.realtime_error_threshold,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: folio.main:app)
app = create_app()
