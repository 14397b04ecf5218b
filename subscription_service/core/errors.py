"""
Error taxonomy and the handlers that render it.

ClientInputError, NotFoundError and StorageError are HTTPExceptions, so
FastAPI renders them as ``{"detail": ...}`` with their status code. Storage
failures never carry database text to the client; the gateway logs it.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

GENERIC_ERROR_DETAIL = "Internal server error"


class ClientInputError(HTTPException):
    """Malformed identifier, body, date, or a failed field validation."""

    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFoundError(HTTPException):
    """The identifier does not resolve to an existing subscription."""

    def __init__(self, detail: str = "Subscription not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class StorageError(HTTPException):
    """Connectivity failure, constraint violation or query failure."""

    def __init__(self, operation: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=GENERIC_ERROR_DETAIL,
        )
        self.operation = operation


def _validation_detail(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return "Error reading request body"
    if any(err.get("loc", ())[:1] == ("path",) for err in errors):
        return "Invalid subscription ID"
    return "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Map request validation and unexpected failures onto the taxonomy."""
    log = structlog.get_logger()

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        detail = _validation_detail(exc)
        log.info(
            "request.invalid",
            path=request.url.path,
            detail=detail,
            errors=[err.get("msg") for err in exc.errors()],
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": detail},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.error(
            "request.unhandled_error",
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": GENERIC_ERROR_DETAIL},
        )
