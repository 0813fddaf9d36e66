"""Application error taxonomy and the handlers that turn errors into responses."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.logging_config import REQUEST_ID_HEADER, get_request_id

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map to a well-defined HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a response body."""
        body: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            body.update(self.details)
        return body


class ValidationError(AppError):
    """Payload is malformed or violates a schema constraint."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
    default_message = "Validation error"

    def __init__(self, errors: list[dict[str, str]], message: str | None = None):
        self.errors = errors
        super().__init__(message, details={"errors": errors})

    @property
    def fields(self) -> list[str]:
        """Names of every field that failed validation."""
        return [error["field"] for error in self.errors]


class Unauthenticated(AppError):
    """No valid session accompanies the request."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_message = "Invalid authentication credentials"


class Forbidden(AppError):
    """The session is valid but lacks rights for the target resource."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "You don't have permission to perform this action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class ConstraintViolation(AppError):
    """The store rejected a write (uniqueness, foreign key, not-null)."""

    status_code = status.HTTP_409_CONFLICT
    code = "constraint_violation"
    default_message = "The request conflicts with existing data"


class DataUnavailable(AppError):
    """The store could not be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "data_unavailable"
    default_message = "Database unavailable"


class ServiceUnavailable(AppError):
    """A third-party service is unconfigured or failing."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "service_unavailable"
    default_message = "Service unavailable"


class Internal(AppError):
    pass


def error_response(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError, tagging it with the current request id."""
    body = exc.to_dict()
    request_id = get_request_id()
    body["request_id"] = request_id
    # Set here as well: 500s are rendered outside the request-id middleware
    headers = {REQUEST_ID_HEADER: request_id}
    if isinstance(exc, Unauthenticated):
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle expected application errors."""
    log = logger.error if isinstance(exc, Internal) else logger.info
    log(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(request, exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report FastAPI body/query validation failures like ValidationError."""
    from src.schemas.registry import field_errors

    error = ValidationError(field_errors(exc.errors()))
    logger.info(f"validation_error on {request.method} {request.url.path}: {error.fields}")
    return error_response(request, error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap router-level HTTP errors (unmatched path, wrong method) in the error format."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error: AppError = NotFound(exc.detail if exc.detail != "Not Found" else None)
    else:
        error = AppError(str(exc.detail))
        error.status_code = exc.status_code
        error.code = "http_error"
    logger.info(f"{error.code} on {request.method} {request.url.path}: {exc.status_code}")
    response = error_response(request, error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and answer with a generic 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(request, Internal())


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all error handlers to the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
