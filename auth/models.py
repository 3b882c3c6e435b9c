"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the
service do the work; routes map these onto api/models.py schemas.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"

TOKEN_TYPE = "refresh"

SESSION_ACTIVE = "active"
SESSION_REVOKED = "revoked"


@dataclass
class User:
    """An account created at registration.

    role is "" when an administrative process has not assigned one yet.
    Member registration always assigns a role (unknown role codes are
    rejected), so "" only appears on rows written outside this service.
    """

    user_id: str
    email: str
    display_name: str
    role: str
    created_at: str | None = None


@dataclass
class Secret:
    """bcrypt digest for one user. Never leaves auth/."""

    user_id: str
    password_hash: str


@dataclass
class RoleCode:
    code: str
    role: str


@dataclass
class SessionRecord:
    """Server-side record of one issued token.

    Immutable except for status, which moves active -> revoked once.
    role is captured at issuance and never re-derived.
    """

    token_id: str
    user_id: str
    role: str
    issued_at: int  # unix seconds
    expires_at: int  # unix seconds
    token_type: str = TOKEN_TYPE
    status: str = SESSION_ACTIVE


@dataclass(frozen=True)
class Claims:
    """Verified contents of a signed session token."""

    token_id: str
    subject: str  # user_id
    role: str
    token_type: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class Principal:
    """Identity attached to an authenticated request."""

    user_id: str
    token_id: str
    role: str


@dataclass(frozen=True)
class SignInResult:
    refresh_token: str
    token_id: str
    lifetime: int
    token_type: str = "Bearer"
