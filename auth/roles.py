"""
auth/roles.py -- Registration-time role resolution.

Members present a role code that maps to a role through the role-code
table. Administrators present a license key instead; any outstanding key
grants the admin role. Both paths fail closed: there is no default role for
an unknown code.

The tables are passed in by the caller (AuthService reads them from the
store) so these functions stay pure.
"""

from __future__ import annotations

import hmac
from collections.abc import Iterable

from auth.errors import InvalidLicenseKey, InvalidRoleCode
from auth.models import ROLE_ADMIN, RoleCode


def resolve_member_role(code: str, role_codes: Iterable[RoleCode]) -> str:
    """Return the role mapped to code. Raises InvalidRoleCode if none matches."""
    if code:
        for entry in role_codes:
            if hmac.compare_digest(entry.code.encode("utf-8"), code.encode("utf-8")):
                if entry.role:
                    return entry.role
                break
    raise InvalidRoleCode()


def resolve_admin_eligibility(license_key: str, license_keys: Iterable[str]) -> str:
    """Return the admin role if license_key is outstanding, else raise InvalidLicenseKey."""
    if license_key:
        for candidate in license_keys:
            if hmac.compare_digest(candidate.encode("utf-8"), license_key.encode("utf-8")):
                return ROLE_ADMIN
    raise InvalidLicenseKey()
