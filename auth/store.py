"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_credential
is the mapper. Service and route code never touches SQL directly.

UserStore satisfies auth.interfaces.UserAccountStore.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is enforced in SQL. The account service checks for an
  existing email before inserting, but the check and the insert are not
  atomic; the constraint is what actually stops a concurrent duplicate.
  create() translates the IntegrityError into EmailTakenError.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.interfaces import EmailTakenError
from auth.models import Credential, NewCredential

logger = logging.getLogger("yellow.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4, assigned in create()
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked by a concurrent write.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for user accounts.

    Usage:
        store = UserStore("sqlite:///yellow.db")
        account = store.create(NewCredential(name="Alice", email="alice@example.com", password_hash=h))
        store.find_by_email("alice@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # UserAccountStore contract
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Credential | None:
        """Look up an account by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_credential(row) if row is not None else None

    def find_by_id(self, user_id: str) -> Credential | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_credential(row) if row is not None else None

    def create(self, data: NewCredential) -> Credential:
        """Insert a new account and return the stored record.

        Raises EmailTakenError if the email already exists (UNIQUE violation).
        """
        now = _now_iso()
        credential = Credential(
            id=str(uuid.uuid4()),
            name=data.name,
            email=data.email,
            password_hash=data.password_hash,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=credential.id,
                        name=credential.name,
                        email=credential.email,
                        password_hash=credential.password_hash,
                        created_at=credential.created_at,
                        updated_at=credential.updated_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise EmailTakenError(data.email) from exc
        return credential

    # ------------------------------------------------------------------
    # Administrative
    # ------------------------------------------------------------------

    def delete_user(self, user_id: str) -> bool:
        """Delete an account. Returns True if a row was removed.

        Tokens already issued for the account stop resolving immediately: the
        auth gate looks the account up on every request.
        """
        with self.engine.connect() as conn:
            deleted = conn.execute(_users.delete().where(_users.c.id == user_id)).rowcount
            conn.commit()
        return deleted > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by the health check."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            return False

    def close(self) -> None:
        """Dispose of the connection pool. Call on application shutdown."""
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_credential(row) -> Credential:
    return Credential(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
