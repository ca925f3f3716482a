"""
api/main.py -- FastAPI application entry point for SessionAuth.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Lifespan handles startup (database handle, schema provisioning, stores,
AuthService, session purge task) and shutdown (cancel purge task, dispose
engine) symmetrically. Nothing is referenced as ambient global state: route
handlers reach the service through app.state.

Startup is fatal if storage is unreachable. The UnavailableError is logged and
re-raised, so uvicorn exits instead of serving requests that cannot succeed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request

from api.errors import register_exception_handlers
from api.models import HealthResponse
from api.routes.auth import router as auth_router
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import AccountStore
from core.config import get_settings
from core.database import Database
from core.errors import UnavailableError

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("sessionauth.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(sessions: SessionStore, interval: int) -> None:
    """Delete expired session rows every `interval` seconds.

    Expiry is already enforced on read, so a failed sweep only delays
    housekeeping; it is logged and retried on the next tick. CancelledError
    from task.cancel() during shutdown propagates out of asyncio.sleep.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            removed = sessions.purge_expired()
        except UnavailableError:
            logger.warning("Session purge skipped -- storage unavailable", exc_info=True)
            continue
        if removed:
            logger.info("Purged %d expired sessions", removed)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_service(db: Database) -> AuthService:
    """Wire the stores and hasher into an AuthService from current settings."""
    settings = get_settings()
    return AuthService(
        accounts=AccountStore(db),
        sessions=SessionStore(db),
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        session_ttl=timedelta(seconds=settings.session_ttl_seconds),
    )


def provision_schema(service: AuthService) -> None:
    """Create the users and sessions tables if missing. Idempotent."""
    service.accounts.initialize()
    service.sessions.initialize()
    logger.info("Schema provisioned")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Database handle and reachability check -- fatal on failure.
      2. Schema provisioning (when AUTO_PROVISION is on).
      3. AuthService into app.state -- must exist before the first request.
      4. Purge task last -- references the session store.
    """
    settings = get_settings()
    logger.info("SessionAuth starting up")
    db = Database(settings.database_url)
    service = build_service(db)
    try:
        db.ping()
        if settings.auto_provision:
            provision_schema(service)
    except UnavailableError:
        logger.critical("Storage unreachable at startup -- refusing to start", exc_info=True)
        db.close()
        raise

    app.state.db = db
    app.state.auth_service = service
    app.state.purge_task = None
    if settings.session_purge_interval_seconds > 0:
        app.state.purge_task = asyncio.create_task(
            _purge_loop(service.sessions, settings.session_purge_interval_seconds)
        )
    logger.info("Auth initialized (session_ttl=%ds)", settings.session_ttl_seconds)

    yield

    # Shutdown
    if app.state.purge_task is not None:
        app.state.purge_task.cancel()
    app.state.db.close()
    logger.info("SessionAuth shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SessionAuth",
    description="Email/password accounts with server-side sessions.",
    version=VERSION,
    lifespan=lifespan,
)

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration state.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and database reachability."""
    db: Database = request.app.state.db
    database = "ok" if db.is_healthy() else "error"
    return HealthResponse(
        status="ok" if database == "ok" else "degraded",
        version=VERSION,
        components={"app": "ok", "database": database},
    )
