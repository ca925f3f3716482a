"""
core/errors.py -- Error taxonomy for the credential workflow.

Every error carries the HTTP status and the public message the boundary sends
back. The message is the ONLY thing a client ever sees; internal detail goes
to the log via the exception chain (raise ... from exc).

Layer rule: stdlib only. auth/ raises these; api/ maps them to responses in one place
(api/errors.py); routes never catch them.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class. Unmapped subclasses surface as a generic 500."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Required input is missing -- the client must fix the request."""

    status_code = 400
    default_message = "Email and password required"


class ConflictError(AuthError):
    """Email already registered."""

    status_code = 409
    default_message = "User already exists"


class AuthenticationError(AuthError):
    """Bad credentials, or a missing / expired / destroyed session.

    Unknown email and wrong password share one message so responses cannot be
    used for account enumeration.
    """

    status_code = 401
    default_message = "Invalid credentials"


class NotFoundError(AuthError):
    """A live session references an account that no longer exists."""

    status_code = 404
    default_message = "User not found"


class UnavailableError(AuthError):
    """Storage unreachable or failed mid-request. Fatal at startup."""

    status_code = 500
    default_message = "Server error"
