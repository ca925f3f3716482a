"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (data container). Dataclasses own domain
shape; stores and the service do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Account:
    """A registered identity.

    email is stored exactly as submitted (case-sensitive) and is the only
    login lookup key. password_digest is the bcrypt output; it is compared
    only through PasswordHasher.verify(), never with ==, and never leaves the
    auth package in a response.
    """

    id: int
    email: str
    password_digest: str
    created_at: str  # ISO 8601 UTC


@dataclass(frozen=True)
class Session:
    """A server-side session.

    email is a snapshot taken at issuance for display; profile lookups still
    re-read the account by account_id so a deleted account is noticed.
    """

    token: str
    account_id: int
    email: str
    expires_at: datetime  # timezone-aware UTC


@dataclass(frozen=True)
class SessionGrant:
    """Result of a successful signup or login: who, plus the bearer token.

    The cookie lifetime comes from settings, matching the TTL the session was
    issued with.
    """

    account_id: int
    email: str
    token: str
