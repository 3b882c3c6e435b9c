#!/usr/bin/env python3
"""
authsvc admin CLI -- manage registration reference data.

Member sign-up requires a role code and admin sign-up requires an
outstanding license key. Both tables are owned by the operator; this CLI is
how they are seeded.

Usage:
  python main.py add-role-code R1 member
  python main.py list-role-codes
  python main.py add-license LIC-2024-0001
  python main.py list-licenses
  python main.py list-licenses --all

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the auth database (same one the API uses).
  JWT_SECRET    Required unless DEBUG=true (Settings validates it on load).
"""

from __future__ import annotations

import argparse
import sys

from auth.store import UserStore
from core.config import get_settings


def _add_role_code(store: UserStore, args: argparse.Namespace) -> int:
    code, role = args.code.strip(), args.role.strip()
    if not code or not role:
        print("  [!] Both CODE and ROLE must be non-empty.")
        return 1
    store.add_role_code(code, role)
    print(f"  Role code '{code}' -> {role}")
    return 0


def _list_role_codes(store: UserStore, args: argparse.Namespace) -> int:
    codes = store.list_role_codes()
    if not codes:
        print("  (no role codes)")
    for entry in codes:
        print(f"  {entry.code}\t{entry.role}")
    return 0


def _add_license(store: UserStore, args: argparse.Namespace) -> int:
    key = args.key.strip()
    if not key:
        print("  [!] KEY must be non-empty.")
        return 1
    if not store.add_license_key(key):
        print(f"  [!] License key '{key}' already exists.")
        return 1
    print(f"  License key '{key}' added")
    return 0


def _list_licenses(store: UserStore, args: argparse.Namespace) -> int:
    keys = store.list_license_keys(include_consumed=args.all)
    if not keys:
        print("  (no license keys)")
    for key in keys:
        print(f"  {key}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage authsvc role codes and admin license keys.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add-role-code", help="Map a registration code to a role")
    p.add_argument("code")
    p.add_argument("role")
    p.set_defaults(func=_add_role_code)

    p = sub.add_parser("list-role-codes", help="Show all role codes")
    p.set_defaults(func=_list_role_codes)

    p = sub.add_parser("add-license", help="Register an outstanding admin license key")
    p.add_argument("key")
    p.set_defaults(func=_add_license)

    p = sub.add_parser("list-licenses", help="Show license keys")
    p.add_argument("--all", action="store_true", help="Include consumed keys")
    p.set_defaults(func=_list_licenses)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    store = UserStore(get_settings().database_url)
    try:
        return args.func(store, args)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
