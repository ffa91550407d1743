"""Exception handlers for the chansync host bridge.

These convert exceptions raised by the engine or by request handling into
consistent JSON responses.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from engine import EngineNotReadyError

logger = logging.getLogger(__name__)


async def engine_not_ready_handler(request: Request, exc: EngineNotReadyError):
    """Handle EngineNotReadyError exceptions.

    Returns a 503 since the engine is missing state it needs (e.g. the host
    has not sent the current user yet).

    Args:
        request: The incoming request that triggered the error.
        exc: The EngineNotReadyError exception.

    Returns:
        JSONResponse with 503 status.
    """
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "Engine Not Ready",
            "detail": exc.message,
        },
    )


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors raised inside route handlers.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValidationError exception.

    Returns:
        JSONResponse with validation error details.
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "detail": "The request data failed validation",
            "validation_errors": exc.errors(include_url=False, include_context=False),
        },
    )


async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions.

    ValueErrors mean the request was well-formed but not valid for the
    current engine state, e.g. retrying a send that has not failed.

    Args:
        request: The incoming request that triggered the error.
        exc: The ValueError exception.

    Returns:
        JSONResponse with error details.
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid Value",
            "detail": str(exc),
            "type": "ValueError",
        },
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle any unhandled exceptions without exposing a stack trace.

    Args:
        request: The incoming request that triggered the error.
        exc: The exception that was raised.

    Returns:
        JSONResponse with generic error message.
    """
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "type": type(exc).__name__,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler to an app, specific exceptions first."""
    app.add_exception_handler(EngineNotReadyError, engine_not_ready_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
