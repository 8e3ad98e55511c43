"""Service-level errors and the handlers that turn them into JSON responses.

Every error body has the same shape: ``{"error": <message>}`` plus an
optional ``"details"`` string.
"""
from contextlib import contextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException


class ServiceError(Exception):
    """Base error raised by the connection / messaging services."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Missing or malformed input, self-reference, out-of-range text."""

    status_code = 400


class ConflictError(ServiceError):
    """Connection state does not allow the requested transition."""

    status_code = 400


class PermissionDeniedError(ServiceError):
    """No accepted connection between the two parties."""

    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


def error_body(message: str, details: Optional[str] = None) -> dict:
    body = {"error": message}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info(f"{request.method} {request.url.path} -> 400: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content=error_body("Invalid request", str(exc.errors())),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_body("Internal server error", str(exc)))


@contextmanager
def storage_errors(db: Session, message: str):
    """Turn a storage failure inside the block into a logged 500 ``ServiceError``."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(message)
        raise ServiceError(message, details=str(e)) from e
