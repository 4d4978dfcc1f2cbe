"""
auth/accounts.py -- Registration, login and user listing.

AccountService orchestrates the store, the password hasher and the token
service. All three are injected at construction; the application lifespan
builds them once and keeps them on app.state.

Invariants:
  - The password digest never leaves this module. Every return value is a
    UserProfile (or a LoginResult wrapping one).
  - Login failures carry one message regardless of cause, and an unknown
    email still costs one bcrypt verification, so neither the response body
    nor its timing reveals whether an account exists.
  - The email/username pre-checks in register() are advisory. The database
    unique constraints decide; an IntegrityError at insert time is a Conflict.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy.exc import IntegrityError

from auth.errors import Conflict, InvalidCredentials, ValidationError, storage_errors
from auth.models import LoginResult, User, UserProfile
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("accounts.auth")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 150
PASSWORD_MIN_LENGTH = 6

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def _missing(value: str | None) -> bool:
    return value is None or not value.strip()


def _missing_password(value: str | None) -> bool:
    # Whitespace is legal password content; only absent or empty counts.
    return not value


def _to_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        username=user.username,
        email=user.email,
        created_at=user.created_at or "",
    )


class AccountService:
    """Account registration and session issuance.

    Usage:
        accounts = AccountService(store, PasswordHasher(), TokenService(secret))
        profile = accounts.register("ada", "ada@example.com", "s3cret!")
        result = accounts.login("ada@example.com", "s3cret!")
        result.token   # bearer token for the auth gate
    """

    def __init__(self, store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, username: str | None, email: str | None, password: str | None) -> UserProfile:
        """Create a new account and return its public profile.

        Raises ValidationError for missing or malformed input and Conflict when
        the email or username is already taken.
        """
        if _missing(username) or _missing(email) or _missing_password(password):
            raise ValidationError("All fields are required (username, email, password)")
        if len(email) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.fullmatch(email):
            raise ValidationError("Please provide a valid email address")
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")

        with storage_errors("registration"):
            if self._store.get_by_email(email) is not None:
                raise Conflict("Email is already registered", field="email")
            if self._store.get_by_username(username) is not None:
                raise Conflict("Username is already taken", field="username")

            hashed = self._hasher.hash(password)
            try:
                user_id = self._store.create_user(User(username=username, email=email, hashed_password=hashed))
            except IntegrityError as exc:
                logger.info("Registration lost a uniqueness race for %r", username)
                raise Conflict() from exc

            created = self._store.get_by_id(user_id)

        logger.info("Registered user %s (id=%d)", username, user_id)
        return _to_profile(created)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None) -> LoginResult:
        """Verify credentials and issue a session token.

        Raises ValidationError if either field is missing and
        InvalidCredentials (same message either way) if the email is unknown
        or the password is wrong.
        """
        if _missing(email) or _missing_password(password):
            raise ValidationError("Email and password are required")

        with storage_errors("login"):
            user = self._store.get_by_email(email)

        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self._hasher.burn(password)
            logger.info("Failed login attempt")
            raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)
        if not self._hasher.verify(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

        token = self._tokens.issue(user_id=user.id, email=user.email, username=user.username)
        logger.info("Login: %s (id=%d)", user.username, user.id)
        return LoginResult(token=token, user=_to_profile(user))

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_all(self) -> list[UserProfile]:
        """Return every account's public profile, newest first."""
        with storage_errors("user listing"):
            users = self._store.list_users()
        return [_to_profile(u) for u in users]
