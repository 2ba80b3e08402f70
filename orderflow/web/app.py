"""FastAPI application for OrderFlow.

Run with ``orderflow web serve`` or ``uvicorn orderflow.web.app:app``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
from prometheus_fastapi_instrumentator import Instrumentator

from orderflow.core.logging import configure_logging
from orderflow.db.connection import close_db
from orderflow.errors import (
    CodeConflict,
    ConcurrentModification,
    EntityNotFound,
    InvalidAction,
    InvalidTransition,
    LifecycleError,
    UnknownStatus,
    ValidationError,
)
from orderflow.web.routes import catalog, checkout, health, lifecycle, notifications, pricing

configure_logging()
logger = structlog.get_logger()

# Most specific first; LifecycleError catches anything unmapped.
ERROR_STATUS_CODES: list[tuple[type[LifecycleError], int]] = [
    (EntityNotFound, 404),
    (ValidationError, 422),
    (InvalidAction, 400),
    (UnknownStatus, 400),
    (InvalidTransition, 409),
    (ConcurrentModification, 409),
    (CodeConflict, 409),
    (LifecycleError, 400),
]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        logger.info("request_completed", status_code=response.status_code)
        response.headers["X-Request-ID"] = request_id
        return response


def status_code_for(exc: LifecycleError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return 400


async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    """Translate domain errors into JSON responses with a stable shape."""
    code = status_code_for(exc)
    content = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, ValidationError) and exc.issues:
        content["issues"] = exc.issues
    if isinstance(exc, InvalidTransition):
        content["current"] = exc.current
        content["target"] = exc.target

    logger.info("request_rejected", error=type(exc).__name__, status_code=code, detail=str(exc))
    return JSONResponse(status_code=code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        lifespan=lifespan,
        title="OrderFlow API",
        description="Rental order, inbound stock and service request lifecycle",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(RequestLoggingMiddleware)
    Instrumentator().instrument(app).expose(app)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(checkout.router)
    app.include_router(lifecycle.router)
    app.include_router(pricing.router)
    app.include_router(notifications.router)

    return app


app = create_app()
