"""FastAPI application for the golf course admin API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from api.config import get_settings
from database.connection import db
from database.db_manager import DatabaseManager
from database.exceptions import DatabaseError
from wizard.sessions import WizardSessionStore

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize DB pool on startup, close on shutdown."""
    settings = get_settings()
    await db.initialize(
        dsn=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        statement_cache_size=settings.statement_cache_size,
    )
    app.state.db_manager = DatabaseManager(
        db.pool,
        schema_retries=settings.schema_cache_retries,
        schema_retry_delay=settings.schema_cache_retry_delay,
    )
    app.state.wizard_sessions = WizardSessionStore(
        redirect_delay=settings.wizard_redirect_delay,
        ttl=settings.wizard_session_ttl,
        max_sessions=settings.wizard_max_sessions,
    )
    yield
    await db.close()


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    status = exc.status_code
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(include_url=False, include_context=False)},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Malformed identifiers (e.g. a non-UUID id in the path)."""
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Golf Course Admin API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    from api.routers import courses, events, profiles, rounds, scorecard, series, wizard
    app.include_router(courses.router, prefix="/api/courses", tags=["courses"])
    app.include_router(scorecard.router, prefix="/api/scorecard", tags=["scorecard"])
    app.include_router(wizard.router, prefix="/api/wizard", tags=["wizard"])
    app.include_router(series.router, prefix="/api/series", tags=["series"])
    app.include_router(events.router, prefix="/api/events", tags=["events"])
    app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])
    app.include_router(rounds.router, prefix="/api/rounds", tags=["rounds"])

    @app.get("/api/health")
    async def health():
        healthy = db.is_initialized and await db.health_check()
        return {"status": "ok" if healthy else "degraded", "database": healthy}

    return app


app = create_app()
