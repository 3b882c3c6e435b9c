"""
api/main.py -- FastAPI application entry point for authsvc.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- one access-log line per request

Lifespan reads Settings once and builds the auth components (stores,
password hasher, token service, AuthService) onto app.state. Routes and
dependencies read them from there; nothing re-reads the environment per
request.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.errors import AuthError, StorageError, ValidationError
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authsvc.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the auth components on startup; dispose the engine on shutdown.

    SessionStore shares UserStore's engine so both tables live in one
    database and one connection pool.
    """
    logger.info("authsvc API starting up")
    app.state.settings = _settings
    app.state.user_store = UserStore(_settings.database_url)
    app.state.sessions = SessionStore(app.state.user_store.engine)
    app.state.tokens = TokenService(_settings.jwt_secret)
    app.state.auth_service = AuthService(
        users=app.state.user_store,
        sessions=app.state.sessions,
        hasher=PasswordHasher(rounds=_settings.bcrypt_rounds),
        tokens=app.state.tokens,
        token_lifetime=_settings.token_lifetime_seconds,
        consume_license_keys=_settings.consume_license_keys,
    )
    logger.info(
        "Auth initialized (token_lifetime=%ds, consume_license_keys=%s)",
        _settings.token_lifetime_seconds,
        _settings.consume_license_keys,
    )

    yield

    app.state.user_store.close()
    logger.info("authsvc API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="authsvc API",
    description="Account registration, sign-in, and revocable bearer sessions.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    max_age=3600,
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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


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


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render any auth-core failure with its stable code and status.

    exc.detail can hold internal text (storage errors, library messages). It
    is only returned to clients when DEBUG=true.
    """
    if exc.status_code >= 500 or isinstance(exc, StorageError):
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.detail)
    else:
        logger.info("%s on %s %s", exc.code, request.method, request.url.path)
    detail = exc.detail if _settings.debug else None
    response = _error_response(exc.status_code, exc.code, exc.message, detail)
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


def _describe_validation(exc: RequestValidationError) -> str:
    """Summarize field errors as "loc: msg" pairs.

    The raw `input` and `ctx` entries are dropped: they echo submitted
    values, passwords included.
    """
    parts = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', '')}")
    return "; ".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when the request body fails validation."""
    logger.info("%s on %s %s", ValidationError.code, request.method, request.url.path)
    detail = _describe_validation(exc) if _settings.debug else None
    return _error_response(
        ValidationError.status_code, ValidationError.code, ValidationError.default_message, detail
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing failures (unknown path, wrong method) in the error envelope."""
    response = _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
