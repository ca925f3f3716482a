"""
API request and response models for SessionAuth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

No response model carries a password digest or a session token; the token
leaves the server only inside the session cookie.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Account

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Body for POST /signup and POST /login (JSON or form-encoded).

    Both fields are optional at the schema level so a missing field reaches
    the service and produces the contract's 400 message rather than a
    framework-shaped validation error. Values past the length caps are
    rejected with that same 400.
    """

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = Field(default=None, max_length=1024)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Response for a successful signup or login."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
    email: str


class ProfileUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    created_at: str

    @classmethod
    def from_account(cls, account: Account) -> "ProfileUser":
        return cls(id=account.id, email=account.email, created_at=account.created_at)


class ProfileResponse(BaseModel):
    """Response for GET /profile."""

    model_config = ConfigDict(frozen=True)

    user: ProfileUser


class LogoutResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response.

    A single human-readable message and nothing else -- no codes that would
    let a client tell "unknown email" from "wrong password", no internals.
    """

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str]
