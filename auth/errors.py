"""
auth/errors.py -- Closed error taxonomy for the auth core.

Every failure the core can produce is one of the AuthError subclasses below.
Each class carries a stable machine-readable `code` and the HTTP status the
API layer maps it to, so api/main.py needs exactly one exception handler for
the whole family.

`detail` holds internal context (e.g. the underlying storage exception text).
The API layer only exposes it when DEBUG=true.

Layer rule: no imports from api/, core/, or third-party web frameworks.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for auth-core failures."""

    status_code: int = 400
    code: str = "auth_error"
    default_message: str = "Authentication request failed."

    def __init__(self, message: str | None = None, *, detail: str | None = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Input and registration eligibility
# ---------------------------------------------------------------------------


class ValidationError(AuthError):
    status_code = 422
    code = "validation_error"
    default_message = "Request validation failed."


class InvalidRoleCode(AuthError):
    status_code = 400
    code = "invalid_role_code"
    default_message = "Invalid role code."


class InvalidLicenseKey(AuthError):
    status_code = 400
    code = "invalid_license_key"
    default_message = "Invalid license key."


class EmailTaken(AuthError):
    status_code = 409
    code = "email_taken"
    default_message = "An account with that email already exists."


# ---------------------------------------------------------------------------
# Credentials and tokens
# ---------------------------------------------------------------------------


class InvalidCredentials(AuthError):
    """Single undifferentiated sign-in failure (unknown user or wrong password)."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password."


class Unauthorized(AuthError):
    status_code = 401
    code = "unauthorized"
    default_message = "Authentication required."


class TokenInvalid(AuthError):
    status_code = 401
    code = "token_invalid"
    default_message = "Token signature is invalid."


class TokenExpired(AuthError):
    status_code = 401
    code = "token_expired"
    default_message = "Token has expired."


class TokenMalformed(AuthError):
    status_code = 401
    code = "token_malformed"
    default_message = "Token is missing required claims."


class SessionRevoked(AuthError):
    status_code = 401
    code = "session_revoked"
    default_message = "Session is no longer active."


# ---------------------------------------------------------------------------
# Sessions and users
# ---------------------------------------------------------------------------


class SessionNotFound(AuthError):
    status_code = 404
    code = "session_not_found"
    default_message = "Session not found."


class AlreadyRevoked(AuthError):
    status_code = 409
    code = "already_revoked"
    default_message = "Session has already been revoked."


class UserNotFound(AuthError):
    status_code = 404
    code = "user_not_found"
    default_message = "User not found."


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class StorageError(AuthError):
    """Backing-store failure. Retryable by the caller."""

    status_code = 503
    code = "storage_error"
    default_message = "Storage is temporarily unavailable."


class InvalidCredentialRecord(AuthError):
    """A stored password digest could not be parsed."""

    status_code = 500
    code = "invalid_credential_record"
    default_message = "Stored credential is corrupt."


class HashingError(AuthError):
    status_code = 500
    code = "hashing_error"
    default_message = "Password hashing failed."


class SigningError(AuthError):
    status_code = 500
    code = "signing_error"
    default_message = "Token signing failed."
