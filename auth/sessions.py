"""
auth/sessions.py -- Server-side session store.

Tokens come from secrets.token_urlsafe(32): 256 bits of entropy, no embedded
meaning, only usable as a lookup key. The row holds everything else.

Expiry is lazy: get() treats a row past expires_at as absent, so correctness
never depends on purge_expired() having run. The purge is housekeeping only.

Usage:
    store = SessionStore(db)
    token = store.create(account_id=1, email="a@x.com", ttl=timedelta(hours=24)).token
    session = store.get(token)      # Session or None
    store.destroy(token)            # idempotent
    store.purge_expired()           # call periodically to trim old rows

Layer rule: no imports from api/.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy.engine import Connection

from auth.models import Session
from core.database import Database, sessions


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    def __init__(self, db: Database, clock: Callable[[], datetime] = _utcnow) -> None:
        self.db = db
        self._clock = clock

    def initialize(self) -> None:
        """Create the sessions table if it does not exist. Idempotent."""
        self.db.ping()
        sessions.create(self.db.engine, checkfirst=True)

    def create(self, account_id: int, email: str, ttl: timedelta, conn: Connection | None = None) -> Session:
        """Persist a new session expiring at now + ttl and return it.

        With conn, the row is written inside the caller's transaction.
        """
        token = secrets.token_urlsafe(32)
        expires_at = self._clock() + ttl
        with self.db.transaction(conn) as tx:
            tx.execute(
                sessions.insert().values(
                    token=token,
                    user_id=account_id,
                    email=email,
                    expires_at=expires_at.timestamp(),
                )
            )
        return Session(token=token, account_id=account_id, email=email, expires_at=expires_at)

    def get(self, token: str) -> Session | None:
        """Return the live session for token, or None if unknown or expired."""
        now = self._clock()
        with self.db.begin() as conn:
            row = conn.execute(
                sessions.select().where(
                    (sessions.c.token == token) & (sessions.c.expires_at > now.timestamp())
                )
            ).fetchone()
        if row is None:
            return None
        return Session(
            token=row.token,
            account_id=row.user_id,
            email=row.email,
            expires_at=datetime.fromtimestamp(row.expires_at, tz=timezone.utc),
        )

    def destroy(self, token: str) -> None:
        """Delete the session. Unknown or already-expired tokens are not an error."""
        with self.db.begin() as conn:
            conn.execute(sessions.delete().where(sessions.c.token == token))

    def purge_expired(self) -> int:
        """Delete every expired row. Returns the number removed."""
        with self.db.begin() as conn:
            result = conn.execute(sessions.delete().where(sessions.c.expires_at <= self._clock().timestamp()))
        return result.rowcount
