"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

require_user() runs the auth gate held on app.state against the request's
Authorization header, attaches the resulting CurrentUser to request.state.user
and returns it. Any failure surfaces as Unauthenticated, which the exception
handler in api/main.py turns into a 401.

get_accounts() hands route handlers the AccountService built in the lifespan.

auth/dependencies.py may import from fastapi (for Request) because this module
is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.accounts import AccountService
from auth.gate import AuthGate
from auth.models import CurrentUser


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def require_user(request: Request) -> CurrentUser:
    """Require a valid bearer token. Raises Unauthenticated otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: CurrentUser = Depends(require_user)): ...
    """
    gate: AuthGate = request.app.state.auth_gate
    user = gate.authenticate(request.headers.get("Authorization"))
    request.state.user = user
    return user
