"""
api/main.py -- FastAPI application factory for Yellow.

Run with:      uvicorn asgi:app --reload

create_app() wires the whole service explicitly: settings -> AuthConfig ->
store -> auth components -> routers. Nothing is looked up by name at request
time. Tests call create_app() with their own store and settings.

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for the front-end dev server
  2. log_requests    -- one access-log line per request

Lifespan closes the store's connection pool on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, FieldError, HealthResponse, ValidationErrorResponse
from api.routes.v1.auth import create_auth_router
from auth.builder import build_auth_components
from auth.store import UserStore
from core.config import Settings, get_settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("yellow.api")

_VERSION = "0.1.0"


def create_app(
    settings: Settings | None = None,
    store: UserStore | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Build the ASGI application.

    Args:
        settings: Defaults to the get_settings() singleton.
        store:    Defaults to a UserStore on settings.database_url. The app
                  owns whichever store it gets and closes it on shutdown.
        clock:    Time source for token issuance and expiry. Tests only.
    """
    settings = settings or get_settings()
    store = store or UserStore(settings.database_url)
    components = build_auth_components(settings.auth_config(), store, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Yellow API starting up (token lifetime %ds)", settings.token_expire_seconds)
        yield
        store.close()
        logger.info("Yellow API shutdown complete")

    app = FastAPI(
        title="Yellow API",
        description="Workspace, project and task tracking.",
        version=_VERSION,
        lifespan=lifespan,
    )
    app.state.auth = components

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

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

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(create_auth_router(components), prefix="/api/v1", tags=["Auth"])

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # Every handler returns a JSON body with at least an "error" field so
    # clients never see a bare stack trace or an HTML error page.
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 with one entry per offending field."""
        details = [
            FieldError(field=".".join(str(part) for part in err["loc"][1:]), message=err["msg"])
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=ValidationErrorResponse(
                error="Validation failed",
                message="Invalid input data",
                details=details,
            ).model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        The auth gate raises HTTPException with detail already shaped as the
        response body (a dict). Pass it through verbatim -- str(dict) would
        produce a Python repr, not JSON.
        """
        headers = getattr(exc, "headers", None)
        if isinstance(exc.detail, dict):
            return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=headers)
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"error": "Not Found"})
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=f"HTTP {exc.status_code}", message=str(exc.detail)).model_dump(),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception goes to the log only, never to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error", message="An unexpected error occurred.").model_dump(),
        )

    # -----------------------------------------------------------------------
    # Health endpoint
    # -----------------------------------------------------------------------

    @app.get("/api/v1/health", tags=["Health"])
    async def health() -> HealthResponse:
        """Return liveness and database connectivity. No authentication required."""
        connected = await run_in_threadpool(store.ping)
        return HealthResponse(
            status="ok" if connected else "error",
            database="connected" if connected else "disconnected",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return app
