"""
auth/passwords.py -- Salted, work-factored password hashing (bcrypt).

Bcrypt is the right choice for low-entropy secrets because its cost factor
makes brute force expensive. Every hash() call draws a fresh salt, so two
accounts with the same password never share a digest.

bcrypt only looks at the first 72 bytes of input, and bcrypt 5 raises instead
of truncating. Inputs are truncated here, identically in hash() and verify(),
so long passwords keep working.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from functools import cached_property

import bcrypt

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """One-way hashing and verification with a configurable work factor."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of plain with a random per-call salt."""
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, digest: str) -> bool:
        """Return True if plain matches digest.

        A malformed digest is a verification failure, not an error.
        """
        try:
            return bcrypt.checkpw(_encode(plain), digest.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    @cached_property
    def _dummy_digest(self) -> str:
        return self.hash("sessionauth_timing_dummy")

    def dummy_verify(self, plain: str) -> None:
        """Spend one verify's worth of work against a throwaway digest.

        Called when the email is unknown so the response takes as long as a
        wrong-password check and timing does not reveal which accounts exist.
        """
        self.verify(plain, self._dummy_digest)
