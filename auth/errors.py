"""
auth/errors.py -- Domain exception taxonomy for the accounts service.

Every failure the HTTP boundary may report derives from AccountError, which
carries the status code and machine-readable code the boundary puts into the
error envelope. api/main.py registers a single exception handler for
AccountError; nothing in auth/ imports FastAPI to raise HTTP errors.

  ValidationError     400  malformed or missing input
  Conflict            409  duplicate email or username
  InvalidCredentials  401  login failure (same message for every cause)
  Unauthenticated     401  missing/invalid/expired token or vanished account
  InternalError       500  persistence or unexpected failure, detail withheld

TokenError (InvalidToken / ExpiredToken) is raised by TokenService only. The
auth gate converts it to Unauthenticated, so it never reaches a client as-is.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger("accounts.auth")


class AccountError(Exception):
    """Base class for failures surfaced to API clients."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AccountError):
    status_code = 400
    code = "validation_error"
    default_message = "Request validation failed."


class Conflict(AccountError):
    """Duplicate email or username.

    field names the colliding column when the pre-check found it; it is None
    when the database unique constraint reported the collision.
    """

    status_code = 409
    code = "conflict"
    default_message = "User with this email or username already exists"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidCredentials(AccountError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class Unauthenticated(AccountError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required."


class InternalError(AccountError):
    status_code = 500
    code = "internal_error"
    default_message = "An unexpected error occurred."


# ---------------------------------------------------------------------------
# Token verification failures
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for session token verification failures."""


class InvalidToken(TokenError):
    """Signature mismatch, malformed structure, or missing claims."""


class ExpiredToken(TokenError):
    """Signature is valid but the token is past its exp claim."""


# ---------------------------------------------------------------------------
# Storage error translation
# ---------------------------------------------------------------------------


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Translate unexpected SQLAlchemy failures into InternalError.

    The original exception is logged with its traceback and chained, but the
    client-facing message stays generic. Callers that expect a specific
    failure (IntegrityError on insert) must catch it inside the block.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Storage failure during %s", action)
        raise InternalError(f"Server error during {action}. Please try again.") from exc
