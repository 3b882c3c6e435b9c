"""
auth/tokens.py -- Session token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry token_id, sub (user_id), role,
       type, iat and exp. The signing key comes from Settings.jwt_secret and
       is handed to TokenService once at startup; nothing here reads the
       environment.

  Algorithm pinning: decode() is always called with algorithms=[HS256]. The
       "alg" header inside a presented token is never trusted, which blocks
       "none" and RS/HS confusion substitutions.

  Errors: parse() distinguishes a bad signature (TokenInvalid), a lapsed exp
       (TokenExpired), and a well-signed token with missing or mistyped
       claims (TokenMalformed). The request dependency turns all three into
       401 with the specific error code.

  token_id: uuid4 per issued token. It is the primary key of the server-side
       session record, which is what makes sign-out authoritative.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import time
import uuid

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JOSEError, JWTClaimsError

from auth.errors import SigningError, TokenExpired, TokenInvalid, TokenMalformed
from auth.models import TOKEN_TYPE, Claims

ALGORITHM = "HS256"


class TokenService:
    """Issue and parse signed session tokens with a single symmetric key.

    Holds no mutable state after construction; one instance is shared by
    every request.
    """

    def __init__(self, signing_key: str, algorithm: str = ALGORITHM) -> None:
        self._signing_key = signing_key
        self._algorithm = algorithm

    def issue(self, user_id: str, role: str, ttl: int) -> tuple[str, Claims]:
        """Sign a fresh token for user_id valid for ttl seconds.

        Returns (signed_token, claims). claims.token_id is the id the caller
        must persist as the session record.
        """
        if not self._signing_key:
            raise SigningError("Signing key is not configured.")
        issued_at = int(time.time())
        claims = Claims(
            token_id=str(uuid.uuid4()),
            subject=user_id,
            role=role,
            token_type=TOKEN_TYPE,
            issued_at=issued_at,
            expires_at=issued_at + ttl,
        )
        payload = {
            "token_id": claims.token_id,
            "sub": claims.subject,
            "role": claims.role,
            "type": claims.token_type,
            "iat": claims.issued_at,
            "exp": claims.expires_at,
        }
        try:
            token = jwt.encode(payload, self._signing_key, algorithm=self._algorithm)
        except JOSEError as exc:
            raise SigningError(detail=str(exc)) from exc
        return token, claims

    def parse(self, token: str) -> Claims:
        """Verify signature and expiry, then return the typed claims.

        ExpiredSignatureError subclasses JWTClaimsError, which subclasses
        JWTError, so the except clauses must stay in this order.
        """
        try:
            payload = jwt.decode(token, self._signing_key, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTClaimsError as exc:
            raise TokenMalformed(detail=str(exc)) from exc
        except JWTError as exc:
            raise TokenInvalid(detail=str(exc)) from exc
        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict) -> Claims:
    token_id = payload.get("token_id")
    subject = payload.get("sub")
    role = payload.get("role")
    token_type = payload.get("type", TOKEN_TYPE)
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")

    if not isinstance(token_id, str) or not token_id:
        raise TokenMalformed(detail="token_id")
    if not isinstance(subject, str) or not subject:
        raise TokenMalformed(detail="sub")
    if not isinstance(role, str):
        raise TokenMalformed(detail="role")
    if token_type != TOKEN_TYPE:
        raise TokenMalformed(detail="type")
    # bool is an int subclass; a token claiming exp=true is not a timestamp.
    for name, value in (("iat", issued_at), ("exp", expires_at)):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TokenMalformed(detail=name)

    return Claims(
        token_id=token_id,
        subject=subject,
        role=role,
        token_type=token_type,
        issued_at=issued_at,
        expires_at=expires_at,
    )
