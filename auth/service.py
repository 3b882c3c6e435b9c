"""
auth/service.py -- Registration, sign-in, and sign-out use cases.

AuthService composes the lower components:

  register_member:  role code -> role (fail closed) -> bcrypt -> user+secret
  register_admin:   license key -> "admin" -> bcrypt -> user+secret (+ consume key)
  authenticate:     email lookup -> bcrypt verify -> sign token -> session row
  revoke_session:   session row active -> revoked

Security:
  authenticate() raises the same InvalidCredentials for an unknown email, a
  wrong display name, a missing secret, a wrong password, and a corrupt
  stored digest. bcrypt runs on every path (dummy digest when there is no
  real one) so timing does not separate them either.

Consistency:
  The user and secret rows are written in a single transaction by
  UserStore.create_account(). On sign-in the token is returned to the caller
  only after its session row is stored; if that insert fails the token is
  discarded and StorageError propagates, so no unrevocable token escapes.

Layer rule: no imports from api/ or core/. Configuration values arrive as
constructor arguments.
"""

from __future__ import annotations

import logging
import uuid

from auth.errors import InvalidCredentialRecord, InvalidCredentials, UserNotFound
from auth.models import Secret, SessionRecord, SignInResult, User
from auth.passwords import PasswordHasher
from auth.roles import resolve_admin_eligibility, resolve_member_role
from auth.sessions import SessionStore
from auth.store import UserStore, now_iso
from auth.tokens import TokenService

logger = logging.getLogger("authsvc.auth")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        token_lifetime: int = 14400,
        consume_license_keys: bool = True,
    ) -> None:
        self.users = users
        self.sessions = sessions
        self.hasher = hasher
        self.tokens = tokens
        self.token_lifetime = token_lifetime
        self.consume_license_keys = consume_license_keys

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_member(self, email: str, display_name: str, password: str, role_code: str) -> User:
        """Create a member account whose role comes from the role-code table.

        Raises InvalidRoleCode for an unknown code, EmailTaken for a
        duplicate email.
        """
        role = resolve_member_role(role_code, self.users.list_role_codes())
        user = self._create_account(email, display_name, password, role)
        logger.info("Registered user %s with role %s", user.user_id, role)
        return user

    def register_admin(self, email: str, display_name: str, password: str, license_key: str) -> User:
        """Create an admin account gated by an outstanding license key.

        Raises InvalidLicenseKey for an unknown or already consumed key.
        """
        role = resolve_admin_eligibility(license_key, self.users.list_license_keys())
        consumed = license_key if self.consume_license_keys else None
        user = self._create_account(email, display_name, password, role, license_key=consumed)
        logger.info("Registered admin %s", user.user_id)
        return user

    def _create_account(
        self,
        email: str,
        display_name: str,
        password: str,
        role: str,
        license_key: str | None = None,
    ) -> User:
        password_hash = self.hasher.hash(password)
        user = User(
            user_id=str(uuid.uuid4()),
            email=normalize_email(email),
            display_name=display_name,
            role=role,
            created_at=now_iso(),
        )
        self.users.create_account(user, Secret(user_id=user.user_id, password_hash=password_hash), license_key)
        return user

    # ------------------------------------------------------------------
    # Sign-in / sign-out
    # ------------------------------------------------------------------

    def authenticate(self, email: str, password: str, display_name: str | None = None) -> SignInResult:
        """Verify credentials and issue a session token.

        display_name is optional; when supplied it must match the account
        as well as the email.
        """
        user = self.users.get_by_email(normalize_email(email))
        if user is not None and display_name is not None and user.display_name != display_name:
            user = None
        secret = self.users.get_secret(user.user_id) if user is not None else None

        if user is None or secret is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.burn(password)
            if user is not None:
                logger.error("User %s has no stored credential", user.user_id)
            raise InvalidCredentials()

        try:
            verified = self.hasher.verify(password, secret.password_hash)
        except InvalidCredentialRecord:
            logger.error("Stored credential for user %s is corrupt", user.user_id)
            raise InvalidCredentials() from None
        if not verified:
            raise InvalidCredentials()

        token, claims = self.tokens.issue(user.user_id, user.role, self.token_lifetime)
        self.sessions.insert(
            SessionRecord(
                token_id=claims.token_id,
                user_id=user.user_id,
                role=claims.role,
                token_type=claims.token_type,
                issued_at=claims.issued_at,
                expires_at=claims.expires_at,
            )
        )
        logger.info("Issued session %s for user %s", claims.token_id, user.user_id)
        return SignInResult(refresh_token=token, token_id=claims.token_id, lifetime=self.token_lifetime)

    def revoke_session(self, token_id: str, user_id: str) -> str:
        """Revoke one session owned by user_id.

        Raises SessionNotFound or AlreadyRevoked.
        """
        self.sessions.revoke(token_id, user_id)
        logger.info("Revoked session %s for user %s", token_id, user_id)
        return "SignOut successful"

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user
