"""
tests/conftest.py -- Shared test fixtures for the accounts service.

This module provides:
  - store / hasher / tokens / accounts / gate: unit-level collaborators over
    a fresh in-memory SQLite database per test
  - _make_test_store(): creates an isolated named shared-memory store
  - _patch_lifespan(): wires test collaborators into app.state, bypassing
    real startup
  - api_client: TestClient against the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the API client because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread.

DEBUG must be set before any api/ or core/ import so get_settings()
auto-generates SECRET_KEY instead of raising ValueError. BCRYPT_ROUNDS is
lowered to bcrypt's minimum to keep the suite fast.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any core/api import so get_settings() succeeds.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.accounts import AccountService
from auth.gate import AuthGate
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"


# ---------------------------------------------------------------------------
# Unit-level collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture(scope="session")
def secret_key() -> str:
    return TEST_SECRET


@pytest.fixture
def tokens(secret_key: str) -> TokenService:
    return TokenService(secret_key)


@pytest.fixture
def accounts(store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> AccountService:
    return AccountService(store, hasher, tokens)


@pytest.fixture
def gate(store: UserStore, tokens: TokenService) -> AuthGate:
    return AuthGate(store, tokens)


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _make_test_store(db_suffix: str) -> UserStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    return UserStore(db_url=f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(store: UserStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.tokens = tokens
        app.state.accounts = AccountService(store, PasswordHasher(rounds=4), tokens)
        app.state.auth_gate = AuthGate(store, tokens)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request, secret_key: str) -> Generator[tuple[TestClient, UserStore, TokenService], None, None]:
    """Yield (client, store, tokens) for API integration tests.

    One database per test module. tokens shares the app's signing secret so
    tests can mint their own tokens (e.g. already-expired ones).
    """
    store = _make_test_store(request.module.__name__.rsplit(".", 1)[-1])
    tokens = TokenService(secret_key)
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(store, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, store, tokens

    app.router.lifespan_context = original_lifespan
    store.close()
