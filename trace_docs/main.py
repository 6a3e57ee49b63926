"""Trace Docs API - FastAPI Application."""

import time
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from trace_docs import __version__
from trace_docs.boot import Bootloader
from trace_docs.config import settings
from trace_docs.database import store
from trace_docs.logger import configure_logging, get_logger
from trace_docs.routers import documents

# Initialize logging early
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - bring the store up on startup, close it on shutdown."""
    # Will sys.exit(1) if config or store startup fails
    Bootloader.validate_config()
    Bootloader.print_config()
    await Bootloader.start_store(store)

    logger.info("Application started", version=__version__, prefix=settings.api_prefix or "/")
    yield

    logger.info("Application shutting down")
    await store.shutdown()


app = FastAPI(
    title="Trace Docs API",
    description="Asset-trace documents stored in Cassandra",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next: Any) -> Response:
    """Middleware to inject Request-ID and log request details."""
    request_id = request.headers.get("X-Request-ID", str(uuid4()))

    # Clear and set contextvars for this request
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start_time = time.perf_counter()
    try:
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger.info(
            "HTTP Request",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as exc:
        duration = time.perf_counter() - start_time
        logger.exception(
            "HTTP Request Failed",
            duration_ms=round(duration * 1000, 2),
            error=str(exc),
        )
        raise


def _error_body(status_code: int, detail: Any) -> dict[str, Any]:
    if isinstance(detail, dict):
        body = dict(detail)
        body.setdefault("message", "Error")
        return {"code": status_code, **body}
    return {"code": status_code, "message": str(detail)}


def _field_path(loc: tuple[Any, ...]) -> str:
    # ("body", "documents", 0, "owner") -> "documents.0.owner"
    parts = [str(part) for part in loc]
    if parts and parts[0] == "body":
        parts = parts[1:]
    return ".".join(parts)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP errors as ``{code, message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report every request validation violation with its field path."""
    errors = [{"field": _field_path(tuple(error["loc"])), "message": error["msg"]} for error in exc.errors()]
    logger.warning("Validation error", errors=[e["message"] for e in errors])
    return JSONResponse(
        status_code=400,
        content={"code": 400, "message": "Validation error", "errors": errors},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to ensure JSON response."""
    # Only show exception details in DEBUG mode
    if settings.debug:
        message = str(exc)
        trace = traceback.format_exc()
    else:
        message = "An internal server error occurred. Please try again later."
        trace = None

    return JSONResponse(
        status_code=500,
        content={
            "code": 500,
            "message": message,
            "trace": trace,
            "request_id": structlog.contextvars.get_contextvars().get("request_id"),
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

app.include_router(documents.router)


if __name__ == "__main__":
    logger.info("Starting server", host=settings.app_host, port=settings.app_port)
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)
