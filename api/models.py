"""
API request and response models for authsvc REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models forbid unknown fields, so malformed
bodies are rejected here with 422 before reaching the auth core. JSON field
names (email, name, role_code, license_key) match the wire format existing
clients already send.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.passwords import MAX_PASSWORD_BYTES

# Deliberately loose: deliverability is the mail system's problem. The
# pattern only guarantees "something@something.tld" with no whitespace.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class _Credentials(BaseModel):
    # No global str_strip_whitespace: passwords are taken byte-for-byte.
    model_config = ConfigDict(extra="forbid")

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """bcrypt only hashes the first 72 bytes; refuse anything longer."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class SignUpRequest(_Credentials):
    """Request body for POST /api/v1/signup."""

    name: str = Field(default="", max_length=255)
    role_code: str = Field(min_length=1, max_length=255)


class AdminSignUpRequest(_Credentials):
    """Request body for POST /api/v1/admin-signup."""

    name: str = Field(default="", max_length=255)
    license_key: str = Field(min_length=1, max_length=255)


class SignInRequest(_Credentials):
    """Request body for POST /api/v1/signin.

    name is optional. When present, the account's display name must match
    as well as the email.
    """

    name: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SignUpResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user_id: str


class SignInResponse(BaseModel):
    """Response for POST /api/v1/signin."""

    model_config = ConfigDict(frozen=True)

    refresh_token: str
    token_type: str = "Bearer"
    lifetime: int


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ProfileResponse(BaseModel):
    """Response for GET /api/v1/profile. Never includes credential data."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    name: str
    role: str
    created_at: str


class VerifyResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    token_id: str
    role: str


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


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
