"""Application exceptions and their HTTP error responses.

Classes:
    SnaplinkError:
        Base class for all application errors. Carries the HTTP status used
        when the error reaches the API layer.

    ValidationError:
        Malformed input (URL, validity, short code, status flag, query).

    ConflictError:
        Custom short code already claimed, or a uniqueness violation.

    NotFoundError:
        Unknown (or inactive, for redirects) short code.

    ExpiredError:
        Known short code whose validity period has passed.

    GenerationExhaustedError:
        No unique short code found within the attempt bound.

    StoreError:
        Database failure (connectivity, constraints).
"""

from datetime import datetime
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class SnaplinkError(Exception):
    """Base exception for all application-specific errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        for key, value in self.extra.items():
            if value is None:
                continue
            body[key] = value.isoformat() if isinstance(value, datetime) else value
        return body


class ValidationError(SnaplinkError):
    """Raised when input fails validation. Never retried."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: list[str] | None = None, **extra: Any) -> None:
        super().__init__(message, details=details, **extra)
        self.details = details or []


class ConflictError(SnaplinkError):
    """Raised when a short code is already claimed."""

    status_code = status.HTTP_409_CONFLICT


class NotFoundError(SnaplinkError):
    """Raised when a short code does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ExpiredError(SnaplinkError):
    """Raised when a short code exists but its validity period has passed."""

    status_code = status.HTTP_410_GONE


class GenerationExhaustedError(SnaplinkError):
    """Raised when no unique short code could be generated."""


class StoreError(SnaplinkError):
    """Raised when the database fails."""


async def snaplink_error_handler(request: Request, exc: SnaplinkError) -> JSONResponse:
    """Render an application error as a JSON body with its status code."""
    if exc.status_code >= 500:
        logger.error("Request failed", error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report request validation failures as 400 with readable details."""
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value").removeprefix("Value error, ")
        details.append(f"{location}: {message}" if location else message)
    error = ValidationError("Validation failed", details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log database errors and hide their details from the client."""
    logger.error("Database error", error=str(exc), error_type=type(exc).__name__)
    error = StoreError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that turn exceptions into API error responses."""
    app.add_exception_handler(SnaplinkError, snaplink_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
