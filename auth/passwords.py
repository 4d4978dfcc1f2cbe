"""
auth/passwords.py -- Credential hashing with bcrypt.

bcrypt reads at most 72 bytes of input, and bcrypt 5 raises ValueError on
anything longer instead of silently truncating. hash() therefore expects
callers to enforce MAX_PASSWORD_BYTES first; verify() treats an overlong
candidate as a mismatch.

bcrypt embeds the random salt and the cost factor in the digest itself, so
verify() needs nothing but the stored string. checkpw() compares in constant
time.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes of input. bcrypt 5 raises on longer
# inputs instead of truncating, so callers validate the length up front.
MAX_PASSWORD_BYTES = 72

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """One-way password hashing and verification.

    Usage:
        hasher = PasswordHasher(rounds=10)
        digest = hasher.hash("s3cret!")
        hasher.verify("s3cret!", digest)   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        # Timing equalization dummy digest. Computed once so the first
        # unknown-email login is not measurably slower than later ones.
        self._dummy_hash = self.hash("accounts_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a freshly salted bcrypt digest of plain."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if plain matches the digest. Never raises."""
        if not plain or not hashed:
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed digest ("Invalid salt") or over-long input.
            return False

    def burn(self, plain: str) -> None:
        """Spend one verification's worth of work against the dummy digest.

        Called when the account does not exist so response time does not
        reveal whether an email is registered.
        """
        self.verify(plain, self._dummy_hash)
