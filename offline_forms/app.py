"""FastAPI application for the offline form service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import async_session_factory, init_models
from .errors import OfflineFormError, RemoteSyncError
from .logging_config import configure_logging
from .middleware import RequestLoggingMiddleware
from .worker import PurgeScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    # Auto-create tables for SQLite (local dev)
    if "sqlite" in settings.database_url:
        await init_models()

    scheduler = None
    if settings.purge_enabled:
        scheduler = PurgeScheduler(async_session_factory)
        scheduler.initialize(
            run_on_startup=settings.purge_run_on_startup,
            test_mode=settings.purge_test_mode,
        )
    app.state.purge_scheduler = scheduler
    logger.info("Offline form service started (%s)", settings.environment)
    yield
    if scheduler is not None:
        await scheduler.stop()
    logger.info("Offline form service stopped")


app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None,
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(RemoteSyncError)
async def remote_sync_error_handler(request: Request, exc: RemoteSyncError):
    data = exc.result.to_dict() if exc.result is not None else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "data": data},
    )


@app.exception_handler(OfflineFormError)
async def offline_form_error_handler(request: Request, exc: OfflineFormError):
    if exc.status_code is None or exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code or 500,
        content={"success": False, "message": exc.message},
    )


# Import and register routers
from .routers import forms, health, history, legacy, purge  # noqa: E402

app.include_router(forms.router)
app.include_router(history.router)
app.include_router(purge.router)
app.include_router(legacy.router)
app.include_router(legacy.history_router)
app.include_router(health.router)
