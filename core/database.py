"""
core/database.py -- Process-wide database handle and schema provisioning.

One Database is built per process (app lifespan or CLI), handed to the stores,
and disposed on shutdown. Stores never create engines of their own.

Schema:
  users     -- accounts. UNIQUE(email) is the single authority for duplicate
               detection; concurrent signups are resolved here, never by a
               read-then-write check in Python.
  sessions  -- server-side sessions keyed by an opaque token. expires_at is
               REAL epoch seconds so expiry comparisons are plain numeric SQL.

Tables are created idempotently by the stores' initialize() methods, run as an
explicit provisioning step before the app takes traffic.

Layer rule: no imports from api/ or auth/. auth/ imports the table objects from here.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from core.errors import UnavailableError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

sessions = Table(
    "sessions",
    metadata,
    Column("token", String(64), primary_key=True),
    Column("user_id", Integer, nullable=False),
    Column("email", String(320), nullable=False),
    Column("expires_at", Float, nullable=False),
    Index("ix_sessions_expires_at", "expires_at"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class Database:
    """Owns the SQLAlchemy engine for the lifetime of the process.

    Usage:
        db = Database("sqlite:///sessionauth.db")
        db.ping()
        with db.begin() as conn:
            conn.execute(...)
        db.close()
    """

    def __init__(self, url: str) -> None:
        connect_args: dict = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine: Engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Yield a connection inside a transaction; commit on success.

        IntegrityError passes through untouched so stores can turn it into a
        domain error. Any other driver-level failure becomes UnavailableError
        and the transaction is rolled back, so nothing partial is committed.
        """
        try:
            with self.engine.begin() as conn:
                yield conn
        except IntegrityError:
            raise
        except (OperationalError, DBAPIError) as exc:
            raise UnavailableError() from exc

    @contextmanager
    def transaction(self, conn: Connection | None = None) -> Iterator[Connection]:
        """Join the caller's transaction when conn is given, else open one.

        Lets a workflow run several store writes as one unit: the outermost
        begin() commits them together or rolls all of them back.
        """
        if conn is not None:
            yield conn
            return
        with self.begin() as new_conn:
            yield new_conn

    def ping(self) -> None:
        """Raise UnavailableError if the database cannot be reached."""
        with self.begin() as conn:
            conn.execute(text("SELECT 1"))

    def is_healthy(self) -> bool:
        try:
            self.ping()
        except UnavailableError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

