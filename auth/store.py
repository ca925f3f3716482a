"""
auth/store.py -- SQLAlchemy Core persistence for accounts (the credential store).

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Service and route code never touch SQL.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Duplicate emails are rejected by the UNIQUE constraint on users.email.
  create() does not read before writing; two concurrent signups for the same
  email produce exactly one row and one ConflictError.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from auth.models import Account
from core.database import Database, users
from core.errors import ConflictError, UnavailableError


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AccountStore:
    """Repository for Account records.

    Usage:
        store = AccountStore(db)
        store.initialize()
        account = store.create("a@x.com", hasher.hash("pw1"))
        store.find_by_email("a@x.com")
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def initialize(self) -> None:
        """Create the users table if it does not exist. Idempotent.

        Raises UnavailableError if the database cannot be reached.
        """
        self.db.ping()
        users.create(self.db.engine, checkfirst=True)

    def find_by_email(self, email: str) -> Account | None:
        """Exact, case-sensitive lookup. Returns None if no account has this email."""
        with self.db.begin() as conn:
            row = conn.execute(users.select().where(users.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_by_id(self, account_id: int) -> Account | None:
        with self.db.begin() as conn:
            row = conn.execute(users.select().where(users.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def create(self, email: str, password_digest: str, conn: Connection | None = None) -> Account:
        """Insert a new account and return it with its assigned id.

        Raises ConflictError if the email is already registered. The check is
        the database's UNIQUE constraint, so it also covers the race where a
        concurrent signup inserted the same email after the caller's pre-check.

        Pass conn to insert inside the caller's transaction; nothing is
        committed until that transaction is.
        """
        created_at = _now_iso()
        try:
            with self.db.transaction(conn) as tx:
                result = tx.execute(
                    users.insert().values(email=email, password_hash=password_digest, created_at=created_at)
                )
                account_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise ConflictError() from exc
        if account_id is None:
            raise UnavailableError()
        return Account(id=account_id, email=email, password_digest=password_digest, created_at=created_at)

    def delete(self, account_id: int) -> bool:
        """Permanently delete an account. Returns True if a row was removed.

        Sessions that reference the account are left in place; profile lookups
        through them report NotFoundError.
        """
        with self.db.begin() as conn:
            result = conn.execute(users.delete().where(users.c.id == account_id))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        password_digest=row.password_hash,
        created_at=row.created_at,
    )
