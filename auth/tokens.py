"""
auth/tokens.py -- Session token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, email, username, iat and
       exp. The lifetime is fixed at 24 hours; there is no refresh and no
       server-side revocation, so nothing about a token is persisted.

  Secret: passed to TokenService by the caller (the application lifespan
       reads it from core.config). The service never reads the environment.

  Failures: verify() raises ExpiredToken when the signature is good but exp
       has passed, and InvalidToken for everything else (bad signature,
       malformed structure, missing claims). The auth gate turns both into a
       401 but keeps the messages distinct so clients know to log in again.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import ExpiredToken, InvalidToken
from auth.models import TokenClaims

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-limited session tokens.

    clock is injectable so tests can mint tokens that were issued in the
    past. Expiry checks inside jose always use the real current time.
    """

    def __init__(self, secret_key: str, clock: Callable[[], datetime] = _utcnow) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        self._secret_key = secret_key
        self._clock = clock
        self.lifetime = TOKEN_LIFETIME

    def issue(self, user_id: int, email: str, username: str) -> str:
        """Encode a signed JWT that expires TOKEN_LIFETIME from now."""
        issued_at = self._clock()
        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "email": email,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT, returning its identity claims.

        Raises ExpiredToken if exp is in the past, InvalidToken on any other
        failure.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except ExpiredSignatureError as exc:
            raise ExpiredToken("Token has expired.") from exc
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc

        user_id = payload.get("user_id")
        email = payload.get("email")
        username = payload.get("username")
        iat = payload.get("iat")
        exp = payload.get("exp")
        # bool is an int subclass; a forged {"user_id": true} must not pass.
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidToken("Token is missing the user_id claim.")
        if not isinstance(email, str) or not isinstance(username, str):
            raise InvalidToken("Token is missing identity claims.")
        if not isinstance(iat, (int, float)) or not isinstance(exp, (int, float)):
            raise InvalidToken("Token is missing timing claims.")

        return TokenClaims(
            user_id=user_id,
            email=email,
            username=username,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
