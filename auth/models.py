"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). The store and the
services do the work; routes map these onto the API response models.

User is the only type that carries the password digest. It never leaves
auth/ -- AccountService converts it to UserProfile before returning.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A row of the users table, as read from or written to the store.

    id, created_at and updated_at are None before the record is inserted;
    the store assigns them.
    """

    username: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None  # ISO 8601, UTC
    updated_at: str | None = None


@dataclass(frozen=True)
class UserProfile:
    """Public fields of a user. Safe to serialize to any client."""

    id: int
    username: str
    email: str
    created_at: str


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserProfile


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims decoded from a verified session token."""

    user_id: int
    email: str
    username: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated identity attached to a request by the auth gate."""

    user_id: int
    email: str
    username: str
