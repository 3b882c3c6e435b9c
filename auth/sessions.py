"""
auth/sessions.py -- Server-side session records (the jwt_tokens table).

Every signed token has exactly one row here, keyed by its token_id claim.
The row is what makes sign-out authoritative: the request dependency checks
is_active() on every authenticated call, so a revoked token stops working
immediately instead of at its natural expiry.

Status moves active -> revoked once and never back. revoke() is a single
conditional UPDATE gated on (token_id, user_id, status='active'), so two
concurrent sign-outs cannot both succeed and one user cannot revoke another
user's session by guessing a token id.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, select
from sqlalchemy.engine import Engine

from auth.errors import AlreadyRevoked, SessionNotFound
from auth.models import SESSION_ACTIVE, SESSION_REVOKED, SessionRecord
from auth.store import storage_errors

_metadata = MetaData()

_tokens = Table(
    "jwt_tokens",
    _metadata,
    Column("token_id", String(36), primary_key=True),
    Column("user_id", String(36), nullable=False, index=True),
    Column("role", String(30), nullable=False, server_default=""),
    Column("token_type", String(20), nullable=False),
    Column("issued_at", Integer, nullable=False),
    Column("expires_at", Integer, nullable=False),
    Column("status", String(10), nullable=False, server_default=SESSION_ACTIVE),
)


class SessionStore:
    """Repository for SessionRecord rows.

    Shares the Engine of UserStore so both live in the same database and
    connection pool.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        with storage_errors():
            _metadata.create_all(self.engine)

    def insert(self, record: SessionRecord) -> None:
        """Persist a new active record. Raises StorageError on failure."""
        with storage_errors(), self.engine.begin() as conn:
            conn.execute(
                _tokens.insert().values(
                    token_id=record.token_id,
                    user_id=record.user_id,
                    role=record.role,
                    token_type=record.token_type,
                    issued_at=record.issued_at,
                    expires_at=record.expires_at,
                    status=SESSION_ACTIVE,
                )
            )

    def revoke(self, token_id: str, user_id: str) -> None:
        """Transition (token_id, user_id) from active to revoked.

        Raises AlreadyRevoked if the pair exists but was revoked earlier,
        SessionNotFound if no record belongs to that pair.
        """
        owned = (_tokens.c.token_id == token_id) & (_tokens.c.user_id == user_id)
        with storage_errors(), self.engine.begin() as conn:
            result = conn.execute(
                _tokens.update().where(owned & (_tokens.c.status == SESSION_ACTIVE)).values(status=SESSION_REVOKED)
            )
            if result.rowcount > 0:
                return
            exists = conn.execute(_tokens.select().where(owned)).fetchone()
        if exists is not None:
            raise AlreadyRevoked()
        raise SessionNotFound()

    def is_active(self, token_id: str) -> bool:
        """Return True only for an existing record that has not been revoked."""
        with storage_errors(), self.engine.connect() as conn:
            status = conn.execute(select(_tokens.c.status).where(_tokens.c.token_id == token_id)).scalar()
        return status == SESSION_ACTIVE

    def get(self, token_id: str) -> SessionRecord | None:
        with storage_errors(), self.engine.connect() as conn:
            row = conn.execute(_tokens.select().where(_tokens.c.token_id == token_id)).fetchone()
        return _row_to_record(row) if row is not None else None


def _row_to_record(row) -> SessionRecord:
    return SessionRecord(
        token_id=row.token_id,
        user_id=row.user_id,
        role=row.role,
        token_type=row.token_type,
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        status=row.status,
    )
