"""
auth/store.py -- SQLAlchemy Core persistence layer for admin accounts.

Pattern: Repository + Data Mapper (same as directory/store.py).
AdminStore is the repository; _row_to_admin is the mapper. Route and
dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  The UNIQUE constraint on email is the single source of truth for the
  "one admin per email" invariant. create_admin() translates the resulting
  IntegrityError into DuplicateEmail so callers never import SQLAlchemy.

DB path: auth/admindesk_admins.db by default (overridden via ADMIN_DB_URL).

Layer rule: no imports from api/ or directory/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Admin
from core.errors import DuplicateEmail

logger = logging.getLogger("admindesk.auth")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'admindesk_admins.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admins = Table(
    "admins",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("gender", String(30), nullable=False),
    Column("password", Text, nullable=False),  # bcrypt digest
    Column("token", Text, index=True),  # current session token, NULL when logged out
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("is_deleted", Integer, nullable=False, server_default="0"),
    Column("created_at", Integer, nullable=False),  # seconds since epoch
    Column("created_by", String(36), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AdminStore:
    """Repository for Admin entities.

    Usage:
        store = AdminStore()
        store.create_admin(Admin(id=..., name="Ada", email="ada@example.com", ...))
        admin = store.get_by_email("ada@example.com")
        store.set_token(admin.id, token)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create_admin(self, admin: Admin) -> str:
        """Insert a new admin and return its id.

        Raises DuplicateEmail if the email is already registered. The
        existing record is left untouched -- the insert is rejected by the
        UNIQUE constraint before any row is written.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _admins.insert().values(
                        id=admin.id,
                        name=admin.name,
                        email=admin.email,
                        gender=admin.gender,
                        password=admin.hashed_password,
                        token=admin.token,
                        is_active=1 if admin.is_active else 0,
                        is_deleted=1 if admin.is_deleted else 0,
                        created_at=admin.created_at,
                        created_by=admin.created_by,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            logger.info("Rejected admin insert: email already registered")
            raise DuplicateEmail() from exc
        return admin.id

    def get_by_email(self, email: str) -> Admin | None:
        """Look up an admin by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.email == email)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_by_id(self, admin_id: str) -> Admin | None:
        """Look up an admin by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_by_token(self, token: str) -> Admin | None:
        """Look up the admin whose stored session token equals token exactly.

        Returns None when no admin holds the token -- including after log-out
        has cleared it.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.token == token)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def set_token(self, admin_id: str, token: str | None) -> bool:
        """Store (or clear, with None) the admin's session token.

        Overwrites any previous token. Returns True if a row was updated,
        False if admin_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_admins.update().where(_admins.c.id == admin_id).values(token=token))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row.id,
        name=row.name,
        email=row.email,
        gender=row.gender,
        hashed_password=row.password,
        token=row.token,
        is_active=bool(row.is_active),
        is_deleted=bool(row.is_deleted),
        created_at=row.created_at,
        created_by=row.created_by,
    )
