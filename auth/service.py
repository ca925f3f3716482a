"""
auth/service.py -- The credential workflow: signup, login, profile, logout.

AuthService holds no per-request state. Every call re-reads the account and
session stores, so the "state machine" lives entirely in storage plus the
token the caller presents.

Security:
  Unknown email and wrong password raise the same AuthenticationError, and
  both run one bcrypt verify, so neither the response nor its timing reveals
  which emails are registered.

  The duplicate-email pre-check in signup() is an optimization. The store's
  UNIQUE constraint is the authority; a conflict it reports is surfaced as
  the same ConflictError.

  Sessions are never reused or revoked by login. An account may hold any
  number of concurrent sessions.

Layer rule: no imports from api/. Raises core.errors types only.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.engine import Connection

from auth.models import Account, SessionGrant
from auth.passwords import PasswordHasher
from auth.sessions import SessionStore
from auth.store import AccountStore
from core.errors import AuthenticationError, ConflictError, NotFoundError, UnavailableError, ValidationError

logger = logging.getLogger("sessionauth.auth")

SESSION_TTL = timedelta(hours=24)


class AuthService:
    def __init__(
        self,
        accounts: AccountStore,
        sessions: SessionStore,
        hasher: PasswordHasher,
        session_ttl: timedelta = SESSION_TTL,
    ) -> None:
        self.accounts = accounts
        self.sessions = sessions
        self.hasher = hasher
        self.session_ttl = session_ttl

    def signup(self, email: str | None, password: str | None) -> SessionGrant:
        """Register a new account and open a session for it.

        Raises ValidationError for missing fields and ConflictError when the
        email is taken (including a concurrent signup winning the race).
        """
        _require_credentials(email, password)

        if self.accounts.find_by_email(email) is not None:
            raise ConflictError()

        digest = self.hasher.hash(password)
        # Account and first session commit together or not at all.
        with self.accounts.db.begin() as conn:
            account = self.accounts.create(email, digest, conn=conn)
            grant = self._grant(account, conn=conn)
        logger.info("Account created (id=%d)", account.id)
        return grant

    def login(self, email: str | None, password: str | None) -> SessionGrant:
        """Verify credentials and open a new session.

        Raises ValidationError for missing fields and AuthenticationError for
        an unknown email or a wrong password, indistinguishably.
        """
        _require_credentials(email, password)

        account = self.accounts.find_by_email(email)
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.dummy_verify(password)
            logger.info("Login failed")
            raise AuthenticationError()
        if not self.hasher.verify(password, account.password_digest):
            logger.info("Login failed")
            raise AuthenticationError()

        logger.info("Login succeeded (id=%d)", account.id)
        return self._grant(account)

    def profile(self, token: str | None) -> Account:
        """Return the live account behind a session token.

        Raises AuthenticationError when the token is missing, unknown, expired
        or destroyed, and NotFoundError when the account has since been deleted.
        """
        if not token:
            raise AuthenticationError("Not authenticated")
        session = self.sessions.get(token)
        if session is None:
            raise AuthenticationError("Not authenticated")

        account = self.accounts.find_by_id(session.account_id)
        if account is None:
            raise NotFoundError()
        return account

    def logout(self, token: str | None) -> None:
        """Destroy the session if one was presented. Always succeeds otherwise."""
        if not token:
            return
        try:
            self.sessions.destroy(token)
        except UnavailableError as exc:
            raise UnavailableError("Could not log out") from exc
        logger.info("Session destroyed")

    def _grant(self, account: Account, conn: Connection | None = None) -> SessionGrant:
        session = self.sessions.create(account.id, account.email, self.session_ttl, conn=conn)
        return SessionGrant(account_id=account.id, email=account.email, token=session.token)


def _require_credentials(email: str | None, password: str | None) -> None:
    if not email or not password:
        raise ValidationError()
