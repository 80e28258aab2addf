"""
Global exception handlers for FastAPI.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from parentgate.core.exceptions import (
    ConfigurationError,
    CredentialStoreUnavailableError,
    IncorrectCredentialError,
    InvalidPinFormatError,
    LockedOutError,
    MissingCredentialError,
    NotAuthorizedError,
    ParentGateError,
    PersistenceError,
    RecoveryAnswerMismatchError,
    SuggestionAlreadyResolvedError,
    SuggestionNotFoundError,
    TimeLockedError,
    ValidationError,
    WeakPinError,
)

log = structlog.get_logger(__name__)

HTTP_423_LOCKED = 423


def status_for(exc: ParentGateError) -> int:
    """Map an application error to its HTTP status code."""
    if isinstance(exc, (LockedOutError, TimeLockedError)):
        return HTTP_423_LOCKED
    if isinstance(exc, (IncorrectCredentialError, RecoveryAnswerMismatchError)):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(
        exc, (InvalidPinFormatError, WeakPinError, MissingCredentialError, ValidationError)
    ):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotAuthorizedError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, (CredentialStoreUnavailableError, PersistenceError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, SuggestionNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, SuggestionAlreadyResolvedError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: ParentGateError) -> dict:
    error = {"type": type(exc).__name__, "message": exc.message}
    if isinstance(exc, (LockedOutError, TimeLockedError)):
        error["remaining_seconds"] = exc.remaining.total_seconds()
    if isinstance(exc, TimeLockedError) and exc.unlocks_at is not None:
        error["unlocks_at"] = exc.unlocks_at.isoformat()
    if isinstance(exc, IncorrectCredentialError):
        error["attempts_remaining"] = exc.attempts_remaining
    if isinstance(exc, WeakPinError):
        error["strength"] = exc.strength
    return {"error": error}


def setup_exception_handlers(app: FastAPI):
    """Register custom exception handlers with the FastAPI application.

    Sets up one handler for all ParentGateError subclasses with the HTTP
    status codes from status_for, plus handlers for configuration errors
    and generic exceptions.
    """

    @app.exception_handler(ParentGateError)
    async def parent_gate_error_handler(
        request: Request,
        exc: ParentGateError,
    ) -> JSONResponse:
        """Handle ParentGateError exceptions with appropriate HTTP status codes."""
        status_code = status_for(exc)

        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).warning(
            "request_error",
            message=exc.message,
            status_code=status_code,
        )

        return JSONResponse(status_code=status_code, content=error_body(exc))

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        """Handle configuration errors with HTTP 500 status."""
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "ConfigurationError",
                    "message": "Server configuration error",
                }
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle all unhandled exceptions with HTTP 500 status."""
        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).error(
            "unhandled_exception",
            message=str(exc),
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "InternalServerError",
                    "message": "An unexpected error occurred",
                }
            },
        )
