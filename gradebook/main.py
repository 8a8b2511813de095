"""FastAPI application — entry point, middleware, and exception handlers.

Creates the gradebook API with:
- CORS middleware (origins from settings)
- Request logging middleware (raw ASGI — no response body buffering)
- Global exception handlers (record errors, HTTPException, validation,
  catch-all), all rendering ``{"error": ..., "code": ...}``
- CRUD routers for teachers, courses, students and tests
- Nested test listings and averages
- Health endpoint

Run with: uvicorn gradebook.main:app --reload
      or: python -m gradebook
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from gradebook.config import get_settings
from gradebook.errors import RecordError
from gradebook.records.kinds import Kind
from gradebook.schemas import ApiError

logger = logging.getLogger("gradebook")


# ---------------------------------------------------------------------------
# Request logging middleware (raw ASGI)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """Logs method, path, status code, and duration for every request.

    Does NOT log request/response bodies, query params, or client IPs.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Wraps the ASGI call to measure timing and capture status code."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "%s %s %d %.1fms", method, path, status_code, duration_ms
            )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiError(error=message, code=code).model_dump(),
    )


def _record_error_response(request: Request, exc: RecordError) -> JSONResponse:
    """Renders validation, reference, conflict and not-found failures."""
    return _error_response(exc.status_code, exc.code, exc.message)


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods, in the same body shape as everything else."""
    return _error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path ids, query values and non-object bodies are client errors (400).

    Returns a human-readable summary without leaking internal details.
    """
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = " -> ".join(str(part) for part in first.get("loc", []))
        msg = first.get("msg", "Validation error")
        detail = f"{loc}: {msg}" if loc else msg
    else:
        detail = "Request validation failed."

    return _error_response(400, "VALIDATION_ERROR", detail)


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Catches all unhandled exceptions — never leaks internals to client.

    Logs the full traceback server-side. Returns a generic 500 response.
    Store failures end up here; they are not retried.
    """
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return _error_response(500, "INTERNAL_ERROR", "Server error")


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def _init_store() -> None:
    """Replaces the default in-memory store with the configured backend."""
    from gradebook.api import deps

    settings = get_settings()
    store = deps.create_store(settings)
    deps.install_store(store)
    logger.info("Document store initialized: backend=%s", settings.store_backend)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    from gradebook.api import deps

    yield
    await deps.get_store().close()


def create_app() -> FastAPI:
    """Creates and configures the FastAPI application."""
    settings = get_settings()

    # Configure logging level
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="Gradebook",
        description="Teachers, courses, students and test results",
        version="0.1.0",
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_middleware(RequestLoggingMiddleware)

    # -- Exception handlers --
    application.add_exception_handler(RecordError, _record_error_response)
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    # -- Routers --
    _register_routes(application)

    # -- Store --
    _init_store()

    return application


def _register_routes(application: FastAPI) -> None:
    """Registers all API routers on the application."""
    from gradebook.api.records import build_router
    from gradebook.api.reports import router as reports_router

    @application.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    for kind in Kind:
        application.include_router(
            build_router(kind), prefix=f"/{kind.value}", tags=[kind.value]
        )

    application.include_router(reports_router, tags=["reports"])


app = create_app()
