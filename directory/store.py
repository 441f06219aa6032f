"""
directory/store.py -- SQLAlchemy-backed persistence layer for the user directory.

Uses SQLAlchemy Core (not ORM) so the domain dataclass in directory/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. UserDirectoryStore is the repository;
_row_to_user is the mapper. Route handlers never touch SQL directly.

Matching rules:
  filter_users() and search_users() do case-insensitive substring matching with
  ILIKE, so the column and the fragment are folded by the same function. On
  SQLite lower() is replaced per connection with a Unicode-aware version, so
  "Österreich" matches "österreich". LIKE wildcards in caller
  input (% and _) are escaped so "50%" matches the literal text, not
  "50 followed by anything".

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = UserDirectoryStore()                               # SQLite default
    store = UserDirectoryStore("postgresql://user:pw@host/db") # PostgreSQL
    store.create_user(User(name="Alice Smith", email="alice@x.com"))
    page = store.list_users(offset=0, limit=20)
    store.close()
"""

import uuid
from pathlib import Path
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, event, func, or_, select
from sqlalchemy.engine import Engine

from directory.models import User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'admindesk_users.db'}"

_LIKE_ESCAPE = "\\"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("age", Integer),
    Column("gender", String(30)),
    Column("country", String(100)),
    Column("city", String(100)),
    Column("company", String(255)),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_unicode_lower(dbapi_conn, connection_record) -> None:
    """Replace SQLite's ASCII-only lower() with Python's Unicode-aware str.lower.

    ILIKE compiles to lower(column) LIKE lower(:pattern) on SQLite, so this
    makes "Österreich" and "österreich" fold to the same text on both sides.
    Set per-connection because application functions are not shared by the pool.
    """
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def _contains_pattern(fragment: str) -> str:
    """Return a LIKE pattern matching fragment anywhere, with wildcards escaped."""
    escaped = (
        fragment.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _icontains(column, fragment: str):
    # Column and pattern go through the same case folding (ILIKE).
    return column.ilike(_contains_pattern(fragment), escape=_LIKE_ESCAPE)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserDirectoryStore:
    """Repository for end-user profile records."""

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
            event.listen(self.engine, "connect", _register_unicode_lower)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes (import tool and fixtures only -- the HTTP layer is read-only)
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a user record and return its id (generated if user.id is None)."""
        user_id = user.id or str(uuid.uuid4())
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    name=user.name,
                    email=user.email,
                    age=user.age,
                    gender=user.gender,
                    country=user.country,
                    city=user.city,
                    company=user.company,
                )
            )
            conn.commit()
        return user_id

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_users(self, offset: int, limit: int) -> list[User]:
        """Return one page of users ordered by name, then id for a stable order.

        Raises ValueError on a negative offset or non-positive limit; the
        route layer validates page numbers before they reach this point.
        """
        if offset < 0 or limit <= 0:
            raise ValueError(f"Invalid page window: offset={offset}, limit={limit}")
        stmt = _users.select().order_by(_users.c.name, _users.c.id).offset(offset).limit(limit)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_user(r) for r in rows]

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def filter_users(self, country: Optional[str] = None, city: Optional[str] = None) -> list[User]:
        """Return users whose country AND city contain the given fragments.

        Each fragment is matched case-insensitively as a substring. A fragment
        that is None or empty matches every record, including records where
        that column is NULL.
        """
        stmt = _users.select()
        if country:
            stmt = stmt.where(_icontains(_users.c.country, country))
        if city:
            stmt = stmt.where(_icontains(_users.c.city, city))
        stmt = stmt.order_by(_users.c.name, _users.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_user(r) for r in rows]

    def search_users(self, text: str) -> list[User]:
        """Return users whose name OR email contains text (case-insensitive)."""
        stmt = (
            _users.select()
            .where(or_(_icontains(_users.c.name, text), _icontains(_users.c.email, text)))
            .order_by(_users.c.name, _users.c.id)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_user(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        age=row.age,
        gender=row.gender,
        country=row.country,
        city=row.city,
        company=row.company,
    )
