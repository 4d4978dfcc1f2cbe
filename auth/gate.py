"""
auth/gate.py -- Bearer-token guard for protected operations.

AuthGate.authenticate() is framework-free: it takes the raw Authorization
header value and returns a CurrentUser or raises Unauthenticated. The FastAPI
wiring lives in auth/dependencies.py.

After the token verifies, the user is re-fetched from the store so a token
that outlives its account stops working immediately. That is one extra DB
round trip per protected request, traded for freshness.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.errors import ExpiredToken, InvalidToken, Unauthenticated, storage_errors
from auth.models import CurrentUser
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("accounts.auth")

NO_TOKEN_MESSAGE = "Access denied. No token provided."
EXPIRED_TOKEN_MESSAGE = "Token has expired. Please login again."
INVALID_TOKEN_MESSAGE = "Invalid token."
UNKNOWN_USER_MESSAGE = "User not found. Token invalid."


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


class AuthGate:
    """Validates bearer tokens against the token service and the user store."""

    def __init__(self, store: UserStore, tokens: TokenService) -> None:
        self._store = store
        self._tokens = tokens

    def authenticate(self, authorization: str | None) -> CurrentUser:
        """Return the identity behind the Authorization header value.

        Raises Unauthenticated when the token is absent, invalid, expired, or
        names an account that no longer exists. The message says which.
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise Unauthenticated(NO_TOKEN_MESSAGE)

        try:
            claims = self._tokens.verify(token)
        except ExpiredToken as exc:
            raise Unauthenticated(EXPIRED_TOKEN_MESSAGE) from exc
        except InvalidToken as exc:
            logger.debug("Rejected token: %s", exc)
            raise Unauthenticated(INVALID_TOKEN_MESSAGE) from exc

        with storage_errors("authentication"):
            user = self._store.get_by_id(claims.user_id)
        if user is None:
            raise Unauthenticated(UNKNOWN_USER_MESSAGE)

        return CurrentUser(user_id=user.id, email=user.email, username=user.username)
