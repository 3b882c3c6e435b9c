"""Unit tests for auth/store.py and auth/sessions.py.

Covers:
- create_account() writes user + secret together, rolls back both on failure
- duplicate email -> EmailTaken; other constraint failures -> StorageError
- license key consumption is conditional and one-shot
- reference data listing (role codes, outstanding license keys)
- session lifecycle: insert -> is_active -> revoke -> AlreadyRevoked
- revoke() requires the owning user_id
- StorageError wraps SQLAlchemy failures
"""

import time

import pytest
from sqlalchemy.pool import StaticPool

from auth.errors import AlreadyRevoked, EmailTaken, InvalidLicenseKey, SessionNotFound, StorageError
from auth.models import SESSION_ACTIVE, SESSION_REVOKED, Secret, SessionRecord, User
from auth.sessions import SessionStore
from auth.store import UserStore


def _user(user_id="u1", email="a@x.com", role="member"):
    return User(user_id=user_id, email=email, display_name="Alice", role=role)


def _record(token_id="t1", user_id="u1"):
    now = int(time.time())
    return SessionRecord(token_id=token_id, user_id=user_id, role="member", issued_at=now, expires_at=now + 60)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class TestAccounts:
    def test_create_account_persists_user_and_secret(self, user_store: UserStore) -> None:
        user_store.create_account(_user(), Secret(user_id="u1", password_hash="$2b$04$digest"))
        user = user_store.get_by_email("a@x.com")
        assert user is not None
        assert user.user_id == "u1"
        assert user.role == "member"
        assert user.created_at
        assert user_store.get_by_id("u1") == user
        assert user_store.get_secret("u1").password_hash == "$2b$04$digest"

    def test_unknown_lookups_return_none(self, user_store: UserStore) -> None:
        assert user_store.get_by_email("nobody@x.com") is None
        assert user_store.get_by_id("missing") is None
        assert user_store.get_secret("missing") is None

    def test_duplicate_email_rejected(self, user_store: UserStore) -> None:
        user_store.create_account(_user(), Secret(user_id="u1", password_hash="h"))
        with pytest.raises(EmailTaken):
            user_store.create_account(_user(user_id="u2"), Secret(user_id="u2", password_hash="h"))
        assert user_store.get_secret("u2") is None

    def test_failed_secret_write_rolls_back_user(self, user_store: UserStore) -> None:
        """A secret insert that fails must not leave a credential-less user behind."""
        user_store.create_account(_user(), Secret(user_id="u1", password_hash="h"))
        with pytest.raises(StorageError):
            # secrets.user_id collides, users row would otherwise be new
            user_store.create_account(_user(user_id="u2", email="b@x.com"), Secret(user_id="u1", password_hash="h"))
        assert user_store.get_by_email("b@x.com") is None

    def test_user_id_collision_is_not_email_taken(self, user_store: UserStore) -> None:
        user_store.create_account(_user(), Secret(user_id="u1", password_hash="h"))
        with pytest.raises(StorageError):
            user_store.create_account(_user(email="b@x.com"), Secret(user_id="u1", password_hash="h"))

    def test_license_key_consumed_once(self, user_store: UserStore) -> None:
        user_store.create_account(
            _user(role="admin"), Secret(user_id="u1", password_hash="h"), license_key="LIC-0001"
        )
        assert "LIC-0001" not in user_store.list_license_keys()
        assert "LIC-0001" in user_store.list_license_keys(include_consumed=True)
        with pytest.raises(InvalidLicenseKey):
            user_store.create_account(
                _user(user_id="u2", email="b@x.com", role="admin"),
                Secret(user_id="u2", password_hash="h"),
                license_key="LIC-0001",
            )
        assert user_store.get_by_email("b@x.com") is None

    def test_reference_data(self, user_store: UserStore) -> None:
        codes = {c.code: c.role for c in user_store.list_role_codes()}
        assert codes == {"R1": "member", "STAFF": "editor"}
        user_store.add_role_code("R1", "viewer")
        assert {c.code: c.role for c in user_store.list_role_codes()}["R1"] == "viewer"
        assert user_store.add_license_key("LIC-0002") is True
        assert user_store.add_license_key("LIC-0002") is False
        assert user_store.list_license_keys() == ["LIC-0001", "LIC-0002"]

    def test_storage_failure_is_wrapped(self) -> None:
        store = UserStore("sqlite:///:memory:")
        with store.engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE users")
        with pytest.raises(StorageError):
            store.get_by_email("a@x.com")
        store.close()

    def test_memory_databases_use_static_pool(self) -> None:
        for url in ("sqlite:///:memory:", "sqlite:///file:pooled?mode=memory&cache=shared&uri=true"):
            store = UserStore(url)
            assert isinstance(store.engine.pool, StaticPool)
            store.close()

    def test_file_database_keeps_default_pool(self, tmp_path) -> None:
        store = UserStore(f"sqlite:///{tmp_path / 'auth.db'}")
        assert not isinstance(store.engine.pool, StaticPool)
        store.close()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessions:
    def test_inserted_record_is_active(self, session_store: SessionStore) -> None:
        session_store.insert(_record())
        assert session_store.is_active("t1") is True
        record = session_store.get("t1")
        assert record.status == SESSION_ACTIVE
        assert record.token_type == "refresh"

    def test_unknown_token_is_not_active(self, session_store: SessionStore) -> None:
        assert session_store.is_active("nope") is False
        assert session_store.get("nope") is None

    def test_revoke_is_terminal(self, session_store: SessionStore) -> None:
        session_store.insert(_record())
        session_store.revoke("t1", "u1")
        assert session_store.is_active("t1") is False
        assert session_store.get("t1").status == SESSION_REVOKED
        with pytest.raises(AlreadyRevoked):
            session_store.revoke("t1", "u1")
        assert session_store.is_active("t1") is False

    def test_revoke_requires_owner(self, session_store: SessionStore) -> None:
        session_store.insert(_record())
        with pytest.raises(SessionNotFound):
            session_store.revoke("t1", "someone-else")
        assert session_store.is_active("t1") is True

    def test_revoke_unknown_token(self, session_store: SessionStore) -> None:
        with pytest.raises(SessionNotFound):
            session_store.revoke("missing", "u1")

    def test_revoking_one_session_leaves_others(self, session_store: SessionStore) -> None:
        session_store.insert(_record("t1"))
        session_store.insert(_record("t2"))
        session_store.revoke("t1", "u1")
        assert session_store.is_active("t2") is True

    def test_duplicate_token_id_is_storage_error(self, session_store: SessionStore) -> None:
        session_store.insert(_record())
        with pytest.raises(StorageError):
            session_store.insert(_record())
