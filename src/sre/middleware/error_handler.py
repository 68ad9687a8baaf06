"""Global error handlers: every failure leaves as ``{"error": message}``."""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from sre.errors import AppError

logger = structlog.get_logger()

# Postgres SQLSTATE for unique_violation
_UNIQUE_VIOLATION = "23505"


def _describe_validation_error(errors: list[dict[str, Any]]) -> str:
    """Collapse pydantic errors into one human-readable sentence."""
    if not errors:
        return "Invalid request"
    if all(err.get("type") == "missing" for err in errors):
        return "Missing required fields"
    first = errors[0]
    # loc is ("body", "field", ...) or ("path", "param")
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def is_unique_violation(exc: IntegrityError) -> bool:
    """Duplicate-key errors from asyncpg or SQLite. Any other constraint failure is not a conflict."""
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if getattr(candidate, "sqlstate", None) == _UNIQUE_VIOLATION:
            return True
    return "UNIQUE constraint failed" in str(orig)


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Map domain errors to their status code."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log("request_failed", path=request.url.path, status=exc.status_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with the error envelope."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed or incomplete bodies are a 400, never a 422."""
        message = _describe_validation_error(list(exc.errors()))
        logger.info("request_invalid", path=request.url.path, error=message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """A unique constraint caught a race the pre-write check missed; other violations are server faults."""
        if not is_unique_violation(exc):
            return _internal_error(request, exc)
        logger.warning("integrity_conflict", path=request.url.path, error=str(exc.orig))
        return JSONResponse(status_code=409, content={"error": "Already exists"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; details stay in the log."""
        return _internal_error(request, exc)
