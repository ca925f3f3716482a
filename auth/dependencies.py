"""
auth/dependencies.py -- FastAPI Depends() helpers for the credential workflow.

get_session_token() pulls the opaque token out of the signed session cookie.
It never raises: a missing or tampered cookie is simply "no token", and the
service decides what that means for the operation (401 for /profile, a no-op
for /logout).

Layer rule: may import from fastapi because this module is part of the
dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.cookies import unsign_token
from auth.service import AuthService
from core.config import get_settings


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService built in the app lifespan."""
    return request.app.state.auth_service


def get_session_token(request: Request) -> str | None:
    """Return the session token from the request cookie, or None."""
    raw = request.cookies.get(get_settings().session_cookie_name)
    return unsign_token(raw)
