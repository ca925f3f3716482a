"""
api/routes/auth.py -- Signup, login, profile and logout endpoints.

Routes:
  POST /signup   -- create account; sets session cookie
  POST /login    -- password login; sets session cookie
  GET  /profile  -- current account (requires a live session)
  POST /logout   -- destroy session; clears cookie

Handlers are plain `def` so FastAPI runs them in its threadpool. bcrypt is
deliberately slow and must not block the event loop.

Errors are not handled here. AuthService raises core.errors types and
api/errors.py turns them into responses.

Security:
  Cache-Control: no-store on every response that sets or reflects a session.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from api.models import AuthResponse, CredentialsRequest, LogoutResponse, ProfileResponse, ProfileUser
from auth.cookies import clear_session_cookie, set_session_cookie
from auth.dependencies import get_auth_service, get_session_token
from auth.models import SessionGrant
from auth.service import AuthService
from core.errors import ValidationError

router = APIRouter()

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_credentials(request: Request) -> CredentialsRequest:
    """Parse {email, password} from a JSON or form-encoded body.

    Anything unparseable is a ValidationError, the same as missing fields.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        data = dict(await request.form())
    else:
        try:
            data = await request.json()
        except ValueError as exc:
            raise ValidationError() from exc
    if not isinstance(data, dict):
        raise ValidationError()
    try:
        return CredentialsRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError() from exc


def _session_response(grant: SessionGrant, message: str) -> JSONResponse:
    resp = JSONResponse(content=AuthResponse(message=message, email=grant.email).model_dump())
    set_session_cookie(resp, grant.token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/signup", response_model=AuthResponse)
def signup(
    body: CredentialsRequest = Depends(read_credentials),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Register an account and log it in."""
    grant = service.signup(body.email, body.password)
    return _session_response(grant, "Account created")


@router.post("/login", response_model=AuthResponse)
def login(
    body: CredentialsRequest = Depends(read_credentials),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with email and password; issue a fresh session.

    Unknown email and wrong password return the same 401 body.
    """
    grant = service.login(body.email, body.password)
    return _session_response(grant, "Logged in")


@router.get("/profile", response_model=ProfileResponse)
def profile(
    token: str | None = Depends(get_session_token),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    account = service.profile(token)
    resp = JSONResponse(content=ProfileResponse(user=ProfileUser.from_account(account)).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_model=LogoutResponse)
def logout(
    token: str | None = Depends(get_session_token),
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Destroy the current session, if any, and clear the cookie. Idempotent."""
    service.logout(token)
    resp = JSONResponse(content=LogoutResponse().model_dump())
    clear_session_cookie(resp)
    return resp
