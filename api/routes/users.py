"""
api/routes/users.py -- Registration, login and user listing endpoints.

Routes:
  POST /api/users/register  -- create an account; 201
  POST /api/users/login     -- password login; returns a bearer token
  GET  /api/users           -- list all users, newest first (requires auth)

Handlers are plain def functions: FastAPI runs them in its thread pool, so
bcrypt work and the synchronous store never block the event loop.

Errors are raised by AccountService / AuthGate as AccountError subclasses and
rendered by the handler in api/main.py. Nothing here builds an error body.

Security:
  Login responses carry Cache-Control: no-store so tokens are not cached.
  Response models have no password field; the service never returns digests.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from api.models import (
    LoginRequest,
    LoginResponse,
    LoginUser,
    RegisterRequest,
    RegisterResponse,
    UserListResponse,
    UserResponse,
)
from auth.accounts import AccountService
from auth.dependencies import get_accounts, require_user
from auth.models import CurrentUser

# Auth policy:
# - POST /api/users/register: public
# - POST /api/users/login:    public
# - GET  /api/users:          requires auth (require_user)
router = APIRouter()


@router.post("/users/register", response_model=RegisterResponse, status_code=201)
def register(body: RegisterRequest, accounts: AccountService = Depends(get_accounts)) -> RegisterResponse:
    """Create a new account and return its public fields."""
    profile = accounts.register(body.username, body.email, body.password)
    return RegisterResponse(message="User registered successfully", user=UserResponse.from_profile(profile))


@router.post("/users/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    accounts: AccountService = Depends(get_accounts),
) -> LoginResponse:
    """Authenticate with email and password; return a 24-hour bearer token.

    Wrong password and unknown email produce the same 401 body.
    """
    result = accounts.login(body.email, body.password)
    response.headers["Cache-Control"] = "no-store"
    return LoginResponse(
        message="Login successful",
        token=result.token,
        user=LoginUser(id=result.user.id, username=result.user.username, email=result.user.email),
    )


@router.get("/users", response_model=UserListResponse)
def list_users(
    accounts: AccountService = Depends(get_accounts),
    current_user: CurrentUser = Depends(require_user),
) -> UserListResponse:
    """List every account's public fields, most recently created first."""
    users = [UserResponse.from_profile(p) for p in accounts.list_all()]
    return UserListResponse(message="Users retrieved successfully", count=len(users), users=users)
