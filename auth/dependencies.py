"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Every protected route resolves a Principal through get_current_principal():

  1. Authorization: Bearer <token> header must be present.
  2. TokenService.parse() must accept the token (signature, exp, claims).
  3. The session record for the token_id must still be active.

Step 3 is what makes sign-out effective: a revoked token fails here even
though its signature and expiry are still valid.

Failures raise AuthError subclasses (Unauthorized, TokenInvalid,
TokenExpired, TokenMalformed, SessionRevoked); the exception handler in
api/main.py renders them as 401 with the specific error code.

Layer rule: may import fastapi (part of the DI system); no imports from api/ or core/.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import SessionRevoked, Unauthorized
from auth.models import Principal
from auth.sessions import SessionStore
from auth.tokens import TokenService


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_principal(request: Request) -> Principal:
    """Require a valid, unrevoked bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: Principal = Depends(get_current_principal)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise Unauthorized()

    tokens: TokenService = request.app.state.tokens
    sessions: SessionStore = request.app.state.sessions

    claims = tokens.parse(token)
    if not sessions.is_active(claims.token_id):
        raise SessionRevoked()
    return Principal(user_id=claims.subject, token_id=claims.token_id, role=claims.role)
