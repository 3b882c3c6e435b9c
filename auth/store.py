"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts and reference data.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user / _row_to_secret are the mappers.
Service and route code never touches SQL directly.

Tables:
  users          -- one row per account; email is UNIQUE.
  secrets        -- one bcrypt digest per user (user_id is the primary key).
  role_codes     -- (code, role) pairs presented at member registration.
  user_licenses  -- license keys presented at admin registration.
                    consumed_at is NULL while the key is outstanding.

Consistency:
  create_account() writes the user row and the secret row in one transaction
  (engine.begin()). Either both exist afterwards or neither does. When a
  license key is supplied it is consumed by a conditional UPDATE inside the
  same transaction, so two concurrent admin sign-ups cannot share one key.

Security:
  All queries use bound parameters. No f-strings in SQL.

Errors:
  SQLAlchemyError is re-raised as auth.errors.StorageError. On
  create_account(), an IntegrityError becomes EmailTaken only when a row with
  that email exists; any other constraint failure is a StorageError.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from auth.errors import EmailTaken, InvalidLicenseKey, StorageError
from auth.models import RoleCode, Secret, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("user_id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255), nullable=False, server_default=""),
    Column("role", String(30), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)

_secrets = Table(
    "secrets",
    _metadata,
    Column("user_id", String(36), primary_key=True),
    Column("password_hash", String(255), nullable=False),
)

_role_codes = Table(
    "role_codes",
    _metadata,
    Column("code", String(255), primary_key=True),
    Column("role", String(30), nullable=False),
)

_licenses = Table(
    "user_licenses",
    _metadata,
    Column("license_key", String(255), primary_key=True),
    Column("created_at", String(32), nullable=False),
    Column("consumed_at", String(32)),
)


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_url(db_url: str) -> bool:
    return ":memory:" in db_url or "mode=memory" in db_url


def make_engine(db_url: str) -> Engine:
    """Create an Engine with the SQLite tweaks applied when relevant.

    In-memory databases live only as long as a connection does, so they get
    a StaticPool: one connection shared by every checkout and thread.
    """
    connect_args: dict = {}
    kwargs: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if _is_memory_url(db_url):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(db_url, connect_args=connect_args, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate SQLAlchemy failures into StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(detail=str(exc)) from exc


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User, Secret, and registration reference data.

    Usage:
        store = UserStore("sqlite:///auth.db")
        store.add_role_code("R1", "member")
        user = store.get_by_email("a@x.com")
        store.close()

    The engine is public so SessionStore can share the same connection pool.
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        with storage_errors():
            _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, user: User, secret: Secret, license_key: str | None = None) -> None:
        """Insert user and secret atomically.

        If license_key is given it must still be outstanding; it is marked
        consumed in the same transaction. A key consumed by a concurrent
        request raises InvalidLicenseKey and nothing is written.
        """
        try:
            with self.engine.begin() as conn:
                if license_key is not None:
                    result = conn.execute(
                        _licenses.update()
                        .where((_licenses.c.license_key == license_key) & (_licenses.c.consumed_at.is_(None)))
                        .values(consumed_at=now_iso())
                    )
                    if result.rowcount == 0:
                        raise InvalidLicenseKey()
                conn.execute(
                    _users.insert().values(
                        user_id=user.user_id,
                        email=user.email,
                        name=user.display_name,
                        role=user.role,
                        created_at=user.created_at or now_iso(),
                    )
                )
                conn.execute(
                    _secrets.insert().values(
                        user_id=secret.user_id,
                        password_hash=secret.password_hash,
                    )
                )
        except IntegrityError as exc:
            # Only the users.email UNIQUE constraint means the address is taken.
            if self.get_by_email(user.email) is not None:
                raise EmailTaken() from exc
            raise StorageError(detail=str(exc)) from exc
        except SQLAlchemyError as exc:
            raise StorageError(detail=str(exc)) from exc

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by normalized email. Returns None if not found."""
        with storage_errors(), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        with storage_errors(), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.user_id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_secret(self, user_id: str) -> Secret | None:
        with storage_errors(), self.engine.connect() as conn:
            row = conn.execute(_secrets.select().where(_secrets.c.user_id == user_id)).fetchone()
        return _row_to_secret(row) if row is not None else None

    # ------------------------------------------------------------------
    # Reference data (role codes, license keys)
    # ------------------------------------------------------------------

    def list_role_codes(self) -> list[RoleCode]:
        with storage_errors(), self.engine.connect() as conn:
            rows = conn.execute(_role_codes.select().order_by(_role_codes.c.code)).fetchall()
        return [RoleCode(code=r.code, role=r.role) for r in rows]

    def add_role_code(self, code: str, role: str) -> None:
        """Insert or replace the role mapped to code."""
        with storage_errors(), self.engine.begin() as conn:
            conn.execute(_role_codes.delete().where(_role_codes.c.code == code))
            conn.execute(_role_codes.insert().values(code=code, role=role))

    def list_license_keys(self, include_consumed: bool = False) -> list[str]:
        """Return license keys, outstanding ones only unless include_consumed."""
        query = _licenses.select().order_by(_licenses.c.license_key)
        if not include_consumed:
            query = query.where(_licenses.c.consumed_at.is_(None))
        with storage_errors(), self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        return [r.license_key for r in rows]

    def add_license_key(self, license_key: str) -> bool:
        """Register a new outstanding license key. Returns False if it already exists."""
        try:
            with self.engine.begin() as conn:
                conn.execute(_licenses.insert().values(license_key=license_key, created_at=now_iso()))
        except IntegrityError:
            return False
        except SQLAlchemyError as exc:
            raise StorageError(detail=str(exc)) from exc
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        user_id=row.user_id,
        email=row.email,
        display_name=row.name or "",
        role=row.role or "",
        created_at=row.created_at,
    )


def _row_to_secret(row) -> Secret:
    return Secret(user_id=row.user_id, password_hash=row.password_hash)
