"""Domain errors and the handlers that render them.

Every error leaves the service in the same envelope as ``ErrorResponse``::

    {"error": {"code": "NOT_FOUND", "message": "...", "details": {}}}
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class AuthError(AppError):
    """Missing, invalid or expired credential, or bad login."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_REQUIRED"
    message = "Authentication required"


class NotFoundError(AppError):
    """Resource absent or not owned by the caller."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Resource already exists"


class FormatError(AppError):
    """The AI reply could not be parsed into a curriculum."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "INVALID_AI_RESPONSE"
    message = "The generated curriculum was not in the expected format"


class GenerationError(AppError):
    """The AI endpoint could not be reached or refused the call."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "GENERATION_FAILED"
    message = "Curriculum generation failed"


class StorageError(AppError):
    code = "STORAGE_ERROR"
    message = "Database error"


class MetricsUpdateError(AppError):
    """The primary write succeeded but the metrics rollup did not."""

    code = "METRICS_UPDATE_FAILED"
    message = "Metrics update failed"


def error_body(
    code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details or {}}}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s (%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            ValidationError.code, ValidationError.message, {"errors": errors}
        ),
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(StorageError.code, StorageError.message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error handlers to ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)
