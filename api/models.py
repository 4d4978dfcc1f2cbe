"""
API request and response models for the accounts REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Request fields are Optional on purpose: presence and shape checks live in
AccountService so that a missing field is a 400 with the service's message,
not FastAPI's generic 422.

Response fields are snake_case in Python and camelCase on the wire
(createdAt). No response model has a password or digest field.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from auth.models import UserProfile

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/users/register."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for POST /api/users/login."""

    email: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class UserResponse(_CamelModel):
    """Public view of a user, as returned by register and the listing."""

    id: int
    username: str
    email: str
    created_at: str

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserResponse":
        return cls(
            id=profile.id,
            username=profile.username,
            email=profile.email,
            created_at=profile.created_at,
        )


class LoginUser(_CamelModel):
    """The user block of a login response (no timestamps)."""

    id: int
    username: str
    email: str


class RegisterResponse(_CamelModel):
    message: str
    user: UserResponse


class LoginResponse(_CamelModel):
    message: str
    token: str
    user: LoginUser


class UserListResponse(_CamelModel):
    message: str
    count: int
    users: list[UserResponse]


class HealthResponse(_CamelModel):
    """Response for GET /health."""

    status: str = "OK"
    timestamp: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail
