"""
api/errors.py -- The single place where errors become HTTP responses.

Route handlers never catch domain errors. They let core.errors types
propagate, and the handlers registered here translate them:

  AuthError subclasses    -> status_code + {"error": message}
  RequestValidationError  -> 400 {"error": "Email and password required"}
  anything else           -> 500 {"error": "Server error"}, traceback logged

Security note: exception details and SQL are written to the log only, never to
the response body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.models import ErrorResponse
from core.errors import AuthError, UnavailableError, ValidationError

logger = logging.getLogger("sessionauth.api")


def _error(status_code: int, message: str) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())
    response.headers["Cache-Control"] = "no-store"
    return response


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map the domain taxonomy to its status and public message.

    Storage failures (UnavailableError, or an unmapped AuthError) are logged
    with the full exception chain; client errors are expected traffic and are
    not.
    """
    if isinstance(exc, UnavailableError) or exc.status_code >= 500:
        logger.error(
            "Request failed on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
    return _error(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get the same 400 as missing credentials."""
    return _error(ValidationError.status_code, ValidationError.default_message)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors. The client sees a generic message."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, AuthError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
