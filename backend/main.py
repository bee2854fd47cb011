# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Build the engine and session factory from Settings and keep them (and the
  Settings) on ``app.state`` for the dependencies in auth/dependencies.py.
* Register CORS and request-logging middleware.
* Mount the feature routers (auth, locks, logs, users).
* Render ServiceError / validation errors as ``{"error", "code"}`` JSON.
* Refuse to start when the database is unreachable, then ping it in the
  background for as long as the process runs.
* Expose a /health endpoint for container liveness checks.

Run with::

    uvicorn main:create_app --factory --app-dir backend
"""

import asyncio
import time
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from admin.router import router as admin_router
from audit.router import router as audit_router
from auth.router import router as auth_router
from core.config import Settings, get_settings
from core.errors import AuthenticationError, InternalError, ServiceError, ValidationError
from core.logger import logger, set_level
from core.security import get_client_ip
from database import build_engine, build_session_factory, ping
from locks.router import router as locks_router

# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies (passwords, tokens) are NOT echoed – only the URL and metadata.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            get_client_ip(request),
            response.status_code,
            elapsed_ms,
        )
        return response


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed or missing input is a 400 before any storage is touched.
    FastAPI's default 422 (and its echo of the submitted values) is never
    returned.
    """
    missing, invalid = [], []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body"
        if err.get("type") in ("missing", "string_too_short"):
            missing.append(field)
        else:
            invalid.append(field)

    if missing:
        error = ValidationError(f"Missing required fields: {', '.join(missing)}", missingFields=missing)
    elif invalid == ["is_open"]:
        error = ValidationError("is_open must be boolean", invalidFields=invalid)
    else:
        error = ValidationError(f"Invalid value for: {', '.join(invalid)}", invalidFields=invalid)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# ---------------------------------------------------------------------------
# Lifespan – startup check and liveness loop
# ---------------------------------------------------------------------------


async def _liveness_loop(app: FastAPI, interval: float) -> None:
    """
    Ping the database every *interval* seconds.  A failure is logged and
    flips ``app.state.database_healthy``; in-flight requests are left alone.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            await run_in_threadpool(ping, app.state.engine)
        except SQLAlchemyError:
            if app.state.database_healthy:
                logger.error("Database liveness check failed", exc_info=True)
            app.state.database_healthy = False
        else:
            if not app.state.database_healthy:
                logger.info("Database liveness check recovered")
            app.state.database_healthy = True


@asynccontextmanager
async def _lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("SecLock service starting up")

    # An unreachable database at startup is fatal: raising here stops the
    # server before it accepts a single request.
    try:
        await run_in_threadpool(ping, app.state.engine)
    except SQLAlchemyError:
        logger.critical("Database unreachable at startup – refusing to serve", exc_info=True)
        raise
    app.state.database_healthy = True

    watcher: Optional[asyncio.Task] = None
    if settings.liveness_interval_seconds > 0:
        watcher = asyncio.create_task(_liveness_loop(app, settings.liveness_interval_seconds))

    yield

    if watcher is not None:
        watcher.cancel()
        with suppress(asyncio.CancelledError):
            await watcher
    app.state.engine.dispose()
    logger.info("SecLock service shutting down")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.  Without *settings* the environment / etc/app.conf
    is read, and a missing SECRET_KEY or DATABASE_URL aborts right here.
    """
    settings = settings or get_settings()
    set_level(settings.log_level)

    app = FastAPI(title="SecLock", version="1.0.0", lifespan=_lifespan)

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.database_healthy = False

    # -- Middleware ---------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(_RequestLogMiddleware)

    # -- Error handlers -----------------------------------------------------
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # -- Routers ------------------------------------------------------------
    app.include_router(auth_router)
    app.include_router(locks_router)
    app.include_router(audit_router)
    app.include_router(admin_router)

    @app.get("/health")
    def health(request: Request):
        try:
            ping(request.app.state.engine)
        except SQLAlchemyError:
            logger.error("Health check: database unreachable", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "degraded", "database": "unreachable"},
            )
        return {"status": "ok", "database": "ok"}

    return app
