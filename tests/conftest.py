"""
tests/conftest.py -- Shared test fixtures for authsvc.

This module provides:
  - _make_test_stores(): isolated in-memory DBs for accounts + sessions
  - _patch_lifespan(): wires test components into app.state, bypassing real startup
  - user_store / session_store / hasher / token_service / auth_service: unit fixtures
  - api_client: TestClient with seeded role codes and license keys

Design: In-memory URLs get a StaticPool from make_engine(), so every thread
TestClient uses for sync route handlers sees the same connection and schema.
The API fixture uses a named shared-memory URI so each test module gets its
own isolated database; unit fixtures use plain :memory:.

DEBUG and BCRYPT_ROUNDS must be set before any api/core import so
get_settings() auto-generates JWT_SECRET and hashing stays fast.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any api/core import (get_settings() is cached).
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

TEST_SIGNING_KEY = "test-signing-key-0123456789abcdef0123456789"
ROLE_CODE = "R1"
LICENSE_KEY = "LIC-0001"


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, SessionStore]:
    """Create an isolated named shared-memory SQLite database.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state.
    """
    url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(url)
    return user_store, SessionStore(user_store.engine)


def _patch_lifespan(user_store: UserStore, sessions: SessionStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        settings = get_settings()
        app.state.settings = settings
        app.state.user_store = user_store
        app.state.sessions = sessions
        app.state.tokens = tokens
        app.state.auth_service = AuthService(
            users=user_store,
            sessions=sessions,
            hasher=PasswordHasher(rounds=4),
            tokens=tokens,
            token_lifetime=14400,
            consume_license_keys=True,
        )
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    store.add_role_code(ROLE_CODE, "member")
    store.add_role_code("STAFF", "editor")
    store.add_license_key(LICENSE_KEY)
    yield store
    store.close()


@pytest.fixture
def session_store(user_store: UserStore) -> SessionStore:
    return SessionStore(user_store.engine)


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def signing_key() -> str:
    return TEST_SIGNING_KEY


@pytest.fixture
def token_service(signing_key: str) -> TokenService:
    return TokenService(signing_key)


@pytest.fixture
def auth_service(
    user_store: UserStore,
    session_store: SessionStore,
    hasher: PasswordHasher,
    token_service: TokenService,
) -> AuthService:
    return AuthService(
        users=user_store,
        sessions=session_store,
        hasher=hasher,
        tokens=token_service,
        token_lifetime=14400,
    )


# ---------------------------------------------------------------------------
# API fixture -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient backed by an isolated, seeded database.

    Seed data: role code R1 -> member, license key LIC-0001.
    """
    user_store, sessions = _make_test_stores(uuid.uuid4().hex)
    user_store.add_role_code(ROLE_CODE, "member")
    user_store.add_license_key(LICENSE_KEY)

    app.router.lifespan_context = _patch_lifespan(user_store, sessions, TokenService(TEST_SIGNING_KEY))

    with TestClient(app, raise_server_exceptions=False) as client:
        yield client

    user_store.close()
