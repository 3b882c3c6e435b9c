"""
api/routes/v1/auth.py -- Registration, sign-in, and session REST endpoints.

Routes:
  POST /api/v1/signup         -- member registration gated by a role code
  POST /api/v1/admin-signup   -- admin registration gated by a license key
  POST /api/v1/signin         -- email/password login; returns a bearer token
  POST /api/v1/signout        -- revokes the presenting token (requires auth)
  GET  /api/v1/profile        -- current user's account (requires auth)
  GET  /api/v1/verify         -- echo the authenticated principal (requires auth)

Security:
  Sign-in returns one generic "invalid_credentials" error for every failure
  so responses do not reveal whether an email is registered.
  Cache-Control: no-store on sign-in responses (the body carries a token).
  Sign-out passes both token_id and user_id from the verified token; the
  session store requires both to match.

Errors raised by the auth core (AuthError subclasses) propagate to the
handler in api/main.py, which renders the structured error envelope.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AdminSignUpRequest,
    MessageResponse,
    ProfileResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    VerifyResponse,
)
from auth.dependencies import get_current_principal
from auth.models import Principal
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/signup:        public
# - POST /api/v1/admin-signup:  public -- the license key is the gate
# - POST /api/v1/signin:        public
# - POST /api/v1/signout:       requires active session (get_current_principal)
# - GET  /api/v1/profile:       requires active session
# - GET  /api/v1/verify:        requires active session
router = APIRouter()


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=SignUpResponse, status_code=201)
def signup(request: Request, body: SignUpRequest) -> SignUpResponse:
    """Register a member. The role comes from the role-code table, never the raw code."""
    user = _service(request).register_member(body.email, body.name, body.password, body.role_code)
    return SignUpResponse(message="SignUp successful, Please Login", user_id=user.user_id)


@router.post("/admin-signup", response_model=SignUpResponse, status_code=201)
def admin_signup(request: Request, body: AdminSignUpRequest) -> SignUpResponse:
    """Register an administrator with an outstanding license key."""
    user = _service(request).register_admin(body.email, body.name, body.password, body.license_key)
    return SignUpResponse(
        message="SignUp successful, Please Login to setup your Organization",
        user_id=user.user_id,
    )


@router.post("/signin", response_model=SignInResponse)
def signin(request: Request, body: SignInRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token."""
    result = _service(request).authenticate(body.email, body.password, display_name=body.name)
    resp = JSONResponse(
        status_code=200,
        content=SignInResponse(
            refresh_token=result.refresh_token,
            token_type=result.token_type,
            lifetime=result.lifetime,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/signout", response_model=MessageResponse)
def signout(request: Request, principal: Principal = Depends(get_current_principal)) -> MessageResponse:
    """Revoke the session that authenticated this request."""
    message = _service(request).revoke_session(principal.token_id, principal.user_id)
    return MessageResponse(message=message)


@router.get("/profile", response_model=ProfileResponse)
def profile(request: Request, principal: Principal = Depends(get_current_principal)) -> ProfileResponse:
    user = _service(request).get_profile(principal.user_id)
    return ProfileResponse(
        user_id=user.user_id,
        email=user.email,
        name=user.display_name,
        role=user.role,
        created_at=user.created_at or "",
    )


@router.get("/verify", response_model=VerifyResponse)
async def verify(principal: Principal = Depends(get_current_principal)) -> VerifyResponse:
    """Return the identity carried by the presented token."""
    return VerifyResponse(user_id=principal.user_id, token_id=principal.token_id, role=principal.role)
