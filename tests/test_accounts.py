"""Unit tests for auth/accounts.py -- registration, login and listing.

Covers:
- Register then login round trip issues a verifiable token
- Validation: missing fields, email shape, username length, password bounds
- Conflicts from the pre-checks (email, username) and from the database
  constraint when the pre-check is bypassed
- Two concurrent registrations with the same email: exactly one wins
- Wrong password and unknown email raise identical InvalidCredentials
- list_all() is newest first and never exposes the digest
- Storage failures surface as InternalError
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from threading import Barrier

import pytest
from sqlalchemy.exc import OperationalError

from auth.accounts import AccountService
from auth.errors import Conflict, InternalError, InvalidCredentials, ValidationError
from auth.models import UserProfile
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService

# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_then_login(accounts: AccountService, tokens: TokenService) -> None:
    profile = accounts.register("ada", "ada@example.com", "s3cret!")
    assert isinstance(profile, UserProfile)
    assert profile.username == "ada"
    assert profile.email == "ada@example.com"
    assert profile.created_at

    result = accounts.login("ada@example.com", "s3cret!")
    assert result.user == profile
    claims = tokens.verify(result.token)
    assert claims.user_id == profile.id
    assert claims.username == "ada"


def test_register_returns_no_digest(accounts: AccountService) -> None:
    profile = accounts.register("ada", "ada@example.com", "s3cret!")
    assert set(asdict(profile)) == {"id", "username", "email", "created_at"}


def test_register_stores_hash_not_plaintext(accounts: AccountService, store: UserStore) -> None:
    accounts.register("ada", "ada@example.com", "s3cret!")
    stored = store.get_by_email("ada@example.com")
    assert stored.hashed_password != "s3cret!"
    assert stored.hashed_password.startswith("$2b$")


@pytest.mark.parametrize(
    "username, email, password",
    [
        (None, "ada@example.com", "s3cret!"),
        ("ada", None, "s3cret!"),
        ("ada", "ada@example.com", None),
        ("", "ada@example.com", "s3cret!"),
        ("ada", "   ", "s3cret!"),
    ],
)
def test_register_requires_all_fields(accounts: AccountService, username, email, password) -> None:
    with pytest.raises(ValidationError) as exc_info:
        accounts.register(username, email, password)
    assert exc_info.value.message == "All fields are required (username, email, password)"
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("email", ["plainaddress", "ada@example", "@example.com", "ada @example.com", "ada@exa mple.com", "ada@example.com\n"])
def test_register_rejects_bad_email(accounts: AccountService, email: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        accounts.register("ada", email, "s3cret!")
    assert exc_info.value.message == "Please provide a valid email address"


def test_register_rejects_overlong_email(accounts: AccountService) -> None:
    email = "a" * 140 + "@example.com"
    with pytest.raises(ValidationError):
        accounts.register("ada", email, "s3cret!")


@pytest.mark.parametrize("username", ["ab", "x" * 101])
def test_register_rejects_bad_username_length(accounts: AccountService, username: str) -> None:
    with pytest.raises(ValidationError):
        accounts.register(username, "ada@example.com", "s3cret!")


def test_password_length_boundary(accounts: AccountService) -> None:
    with pytest.raises(ValidationError) as exc_info:
        accounts.register("ada", "ada@example.com", "12345")
    assert exc_info.value.message == "Password must be at least 6 characters long"

    profile = accounts.register("ada", "ada@example.com", "123456")
    assert profile.username == "ada"


def test_password_over_72_bytes_rejected(accounts: AccountService) -> None:
    with pytest.raises(ValidationError):
        accounts.register("ada", "ada@example.com", "é" * 37)  # 74 bytes in UTF-8


def test_duplicate_email_conflict(accounts: AccountService) -> None:
    accounts.register("ada", "ada@example.com", "s3cret!")
    with pytest.raises(Conflict) as exc_info:
        accounts.register("ada2", "ada@example.com", "s3cret!")
    assert exc_info.value.field == "email"
    assert exc_info.value.status_code == 409


def test_duplicate_username_conflict(accounts: AccountService) -> None:
    accounts.register("ada", "ada@example.com", "s3cret!")
    with pytest.raises(Conflict) as exc_info:
        accounts.register("ada", "other@example.com", "s3cret!")
    assert exc_info.value.field == "username"


def test_constraint_violation_is_conflict(accounts: AccountService, store: UserStore, monkeypatch) -> None:
    """When the pre-check misses a duplicate, the insert-time constraint decides."""
    accounts.register("ada", "ada@example.com", "s3cret!")
    monkeypatch.setattr(store, "get_by_email", lambda email: None)
    monkeypatch.setattr(store, "get_by_username", lambda username: None)
    with pytest.raises(Conflict) as exc_info:
        accounts.register("ada", "ada@example.com", "s3cret!")
    assert exc_info.value.field is None


def test_concurrent_registration_single_winner(tmp_path, hasher: PasswordHasher, tokens: TokenService) -> None:
    """Two threads race to register the same email: one succeeds, one conflicts."""
    store = UserStore(f"sqlite:///{tmp_path / 'race.db'}")
    accounts = AccountService(store, hasher, tokens)
    barrier = Barrier(2)

    def attempt(username: str):
        barrier.wait()
        try:
            return accounts.register(username, "race@example.com", "s3cret!")
        except Conflict as exc:
            return exc

    try:
        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = list(pool.map(attempt, ["racer1", "racer2"]))
    finally:
        store.close()

    winners = [o for o in outcomes if isinstance(o, UserProfile)]
    losers = [o for o in outcomes if isinstance(o, Conflict)]
    assert len(winners) == 1
    assert len(losers) == 1


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def test_login_wrong_password_and_unknown_email_identical(accounts: AccountService) -> None:
    accounts.register("ada", "ada@example.com", "s3cret!")

    with pytest.raises(InvalidCredentials) as wrong_password:
        accounts.login("ada@example.com", "wrong-password")
    with pytest.raises(InvalidCredentials) as unknown_email:
        accounts.login("nobody@example.com", "s3cret!")

    assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"
    assert wrong_password.value.code == unknown_email.value.code
    assert wrong_password.value.status_code == unknown_email.value.status_code == 401


def test_unknown_email_still_runs_bcrypt(accounts: AccountService, hasher: PasswordHasher, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(hasher, "burn", lambda plain: calls.append(plain))
    with pytest.raises(InvalidCredentials):
        accounts.login("nobody@example.com", "s3cret!")
    assert calls == ["s3cret!"]


@pytest.mark.parametrize("email, password", [(None, "s3cret!"), ("ada@example.com", None), ("", "")])
def test_login_requires_fields(accounts: AccountService, email, password) -> None:
    with pytest.raises(ValidationError) as exc_info:
        accounts.login(email, password)
    assert exc_info.value.message == "Email and password are required"


def test_whitespace_password_is_a_real_password(accounts: AccountService, tokens: TokenService) -> None:
    """Spaces count as password characters; only an empty password is missing."""
    profile = accounts.register("spaced", "spaced@example.com", "      ")

    result = accounts.login("spaced@example.com", "      ")
    assert tokens.verify(result.token).user_id == profile.id

    with pytest.raises(InvalidCredentials):
        accounts.login("spaced@example.com", "       ")


def test_whitespace_password_for_unknown_email_is_invalid_credentials(accounts: AccountService) -> None:
    with pytest.raises(InvalidCredentials):
        accounts.login("nobody@example.com", "      ")


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def test_list_all_newest_first(accounts: AccountService) -> None:
    for name in ("alice", "bob", "carol"):
        accounts.register(name, f"{name}@example.com", "s3cret!")
    assert [p.username for p in accounts.list_all()] == ["carol", "bob", "alice"]


def test_list_all_profiles_only(accounts: AccountService) -> None:
    accounts.register("ada", "ada@example.com", "s3cret!")
    for profile in accounts.list_all():
        assert isinstance(profile, UserProfile)
        assert "hashed_password" not in asdict(profile)


# ---------------------------------------------------------------------------
# Storage failures
# ---------------------------------------------------------------------------


def test_storage_failure_becomes_internal_error(accounts: AccountService, store: UserStore, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(store, "list_users", broken)
    with pytest.raises(InternalError) as exc_info:
        accounts.list_all()
    assert "disk I/O error" not in exc_info.value.message
    assert exc_info.value.status_code == 500
