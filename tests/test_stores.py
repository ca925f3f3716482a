"""Unit tests for auth/store.py and auth/sessions.py.

Covers:
- AccountStore: create/find round trip, exact-match email lookup, UNIQUE
  enforcement without a pre-read, delete, idempotent initialize
- SessionStore: create/get, lazy expiry at the exact instant, idempotent
  destroy, purge_expired only removes expired rows, unique tokens
- Both stores writing through one shared transaction commit or roll back together
"""

from datetime import timedelta

import pytest

from auth.sessions import SessionStore
from auth.store import AccountStore
from core.database import Database
from core.errors import ConflictError


@pytest.fixture
def accounts(db: Database) -> AccountStore:
    return AccountStore(db)


@pytest.fixture
def sessions(db: Database, clock) -> SessionStore:
    return SessionStore(db, clock=clock)


class TestAccountStore:
    def test_create_assigns_id_and_timestamp(self, accounts: AccountStore) -> None:
        account = accounts.create("a@x.com", "digest-1")
        assert account.id is not None
        assert account.email == "a@x.com"
        assert account.created_at

    def test_find_by_email_and_id(self, accounts: AccountStore) -> None:
        created = accounts.create("a@x.com", "digest-1")
        by_email = accounts.find_by_email("a@x.com")
        by_id = accounts.find_by_id(created.id)
        assert by_email == created
        assert by_id == created

    def test_find_missing_returns_none(self, accounts: AccountStore) -> None:
        assert accounts.find_by_email("nobody@x.com") is None
        assert accounts.find_by_id(9999) is None

    def test_email_lookup_is_case_sensitive(self, accounts: AccountStore) -> None:
        accounts.create("a@x.com", "digest-1")
        assert accounts.find_by_email("A@X.COM") is None

    def test_duplicate_email_rejected_by_store(self, accounts: AccountStore) -> None:
        """The UNIQUE constraint alone rejects the second insert -- no pre-read involved."""
        accounts.create("a@x.com", "digest-1")
        with pytest.raises(ConflictError) as excinfo:
            accounts.create("a@x.com", "digest-2")
        assert excinfo.value.message == "User already exists"
        assert accounts.find_by_email("a@x.com").password_digest == "digest-1"

    def test_ids_are_unique(self, accounts: AccountStore) -> None:
        first = accounts.create("a@x.com", "d")
        second = accounts.create("b@x.com", "d")
        assert first.id != second.id

    def test_delete(self, accounts: AccountStore) -> None:
        account = accounts.create("a@x.com", "d")
        assert accounts.delete(account.id) is True
        assert accounts.find_by_id(account.id) is None
        assert accounts.delete(account.id) is False

    def test_initialize_is_idempotent(self, accounts: AccountStore) -> None:
        accounts.create("a@x.com", "d")
        accounts.initialize()
        accounts.initialize()
        assert accounts.find_by_email("a@x.com") is not None


class TestSessionStore:
    def test_create_then_get(self, sessions: SessionStore, clock) -> None:
        created = sessions.create(7, "a@x.com", timedelta(hours=24))
        fetched = sessions.get(created.token)
        assert fetched is not None
        assert fetched.account_id == 7
        assert fetched.email == "a@x.com"
        assert fetched.expires_at == clock.now + timedelta(hours=24)

    def test_tokens_are_unique_and_opaque(self, sessions: SessionStore) -> None:
        tokens = {sessions.create(1, "a@x.com", timedelta(hours=1)).token for _ in range(20)}
        assert len(tokens) == 20
        assert all("a@x.com" not in t for t in tokens)

    def test_unknown_token_is_absent(self, sessions: SessionStore) -> None:
        assert sessions.get("no-such-token") is None

    def test_expired_session_is_absent(self, sessions: SessionStore, clock) -> None:
        token = sessions.create(1, "a@x.com", timedelta(hours=24)).token
        clock.advance(hours=23, minutes=59)
        assert sessions.get(token) is not None
        clock.advance(minutes=1)
        assert sessions.get(token) is None

    def test_destroy_is_idempotent(self, sessions: SessionStore) -> None:
        token = sessions.create(1, "a@x.com", timedelta(hours=1)).token
        sessions.destroy(token)
        assert sessions.get(token) is None
        sessions.destroy(token)
        sessions.destroy("never-existed")

    def test_purge_removes_only_expired(self, sessions: SessionStore, clock) -> None:
        short = sessions.create(1, "a@x.com", timedelta(hours=1)).token
        long = sessions.create(1, "a@x.com", timedelta(hours=48)).token
        clock.advance(hours=2)
        assert sessions.purge_expired() == 1
        assert sessions.get(short) is None
        assert sessions.get(long) is not None
        assert sessions.purge_expired() == 0


class TestSharedTransaction:
    def test_writes_in_one_transaction_roll_back_together(
        self, db: Database, accounts: AccountStore, sessions: SessionStore
    ) -> None:
        with pytest.raises(RuntimeError):
            with db.begin() as conn:
                account = accounts.create("a@x.com", "d", conn=conn)
                token = sessions.create(account.id, "a@x.com", timedelta(hours=1), conn=conn).token
                raise RuntimeError("abort")
        assert accounts.find_by_email("a@x.com") is None
        assert sessions.get(token) is None

    def test_writes_in_one_transaction_commit_together(
        self, db: Database, accounts: AccountStore, sessions: SessionStore
    ) -> None:
        with db.begin() as conn:
            account = accounts.create("a@x.com", "d", conn=conn)
            token = sessions.create(account.id, "a@x.com", timedelta(hours=1), conn=conn).token
        assert accounts.find_by_id(account.id) == account
        assert sessions.get(token).account_id == account.id
