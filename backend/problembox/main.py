"""Problem Box API application."""

import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .api import auth_router, library_router, nodes_router, problems_router
from .core.config import ConfigurationError, Environment, settings
from .core.logging_config import setup_logging
from .database import DATABASE_URL, get_db, init_db
from .exceptions import ProblemBoxException
from .middleware.exception_handler import database_exception_handler, problembox_exception_handler
from .middleware.request_context import RequestContextMiddleware

API_VERSION = "1.0.0"

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


def _mask_url(url: str) -> str:
    """Mask the password in a database URL for logging."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", url)


logger.info(f"Using database: {_mask_url(DATABASE_URL)}")
init_db()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup checks for the Problem Box API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and not settings.auth_enabled:
        logger.warning(
            "Authentication is disabled (AUTH_ENABLED=false). "
            "Every request acts as '%s'.",
            settings.default_user_id,
        )

    yield


app = FastAPI(
    title="Problem Box API",
    description=(
        "Personal library of practice problems organised in a folder tree with "
        "a soft-delete trash folder, favourites, and drag-and-drop ordering.\n\n"
        "**Authentication:** When `AUTH_ENABLED=true`, every `/api` endpoint except "
        "register and login requires a `Bearer` token. When `AUTH_ENABLED=false` "
        "(default), requests act as the configured local user."
    ),
    version=API_VERSION,
    lifespan=lifespan,
)

# Outermost first: CORS wraps request context.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(ProblemBoxException, problembox_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)

app.include_router(auth_router)
app.include_router(library_router)
app.include_router(nodes_router)
app.include_router(problems_router)

logger.info(
    "Problem Box API started | env=%s | db=%s | auth=%s",
    settings.environment.value,
    "PostgreSQL" if DATABASE_URL.startswith("postgresql") else "SQLite",
    "enabled" if settings.auth_enabled else "disabled",
)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "Problem Box API",
        "version": API_VERSION,
        "status": "running",
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Database status, uptime and problem count.

    Never raises: a database failure reports ``degraded`` instead of a 5xx.
    """
    db_status = "ok"
    problem_count = 0
    try:
        problem_count = db.execute(text("SELECT COUNT(*) FROM problems")).scalar() or 0
    except Exception:
        logger.exception("Health check query failed")
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": API_VERSION,
        "problem_count": problem_count,
    }
