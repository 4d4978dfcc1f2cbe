"""
api/main.py -- FastAPI application entry point for the accounts service.

Run with:  python main.py
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for the configured frontend origins
  2. log_requests   -- one log line per request with status and latency

Lifespan builds the collaborators once (store, hasher, token service,
account service, auth gate), keeps them on app.state, and disposes the
database engine on shutdown. Nothing is a module-level singleton except
the settings.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.users import router as users_router
from auth.accounts import AccountService
from auth.errors import AccountError, Unauthenticated
from auth.gate import AuthGate
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("accounts.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the service graph on startup and release it on shutdown.

    Startup order matters:
      1. Store first, and its connection is tested before anything else --
         the service refuses to start against an unreachable database.
      2. Hasher and token service depend on nothing but settings.
      3. AccountService and AuthGate are wired from the three above.
    """
    settings = get_settings()
    logger.info("Accounts API starting up")
    store = UserStore(settings.database_url)
    if not store.check_connection():
        store.close()
        raise RuntimeError("Failed to connect to database.")
    logger.info("Database connection test successful")

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenService(settings.secret_key)
    app.state.user_store = store
    app.state.tokens = tokens
    app.state.accounts = AccountService(store, hasher, tokens)
    app.state.auth_gate = AuthGate(store, tokens)

    yield

    app.state.user_store.close()
    logger.info("Accounts API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="User Accounts API",
    description="Registration, login and an authenticated user listing.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, prefix="/api", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    """Render domain failures raised by AccountService and AuthGate.

    InternalError messages are generic by construction; the underlying
    exception was already logged where it was translated.
    """
    response = _error_response(exc.status_code, exc.code, exc.message)
    if isinstance(exc, Unauthenticated):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the body is not JSON or a field has the wrong type."""
    return _error_response(400, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured errors for routing failures (unknown path, wrong method)."""
    if exc.status_code == 404:
        return _error_response(404, "not_found", f"Cannot {request.method} {request.url.path}")
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Service endpoints
#
# Defined directly in main.py (not in a router) so they are always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    """Liveness probe for load balancers. No auth, no DB access."""
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc).isoformat())


@app.get("/", tags=["Health"])
async def root() -> dict:
    """Describe the API and list its endpoints."""
    return {
        "message": "Welcome to User Management API",
        "version": VERSION,
        "endpoints": {
            "register": "POST /api/users/register",
            "login": "POST /api/users/login",
            "getUsers": "GET /api/users (requires authentication)",
        },
    }
