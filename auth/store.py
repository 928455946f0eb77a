"""
auth/store.py -- SQLAlchemy Core persistence layer for admin credentials.

Pattern: Repository + Data Mapper (same as portfolio/store.py).
AdminStore is the repository; _row_to_admin is the mapper. Route, CLI and
dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only bcrypt hashes are written; callers hash before calling the store.

Invariants:
  UNIQUE(username) at the SQL level -- a second create_admin() with the same
  username raises IntegrityError.
  There is no delete method: the admin record is never removed in normal
  operation, only its password hash is rotated.

Layer rule: no imports from api/, web/, or portfolio/. core/ (engine helpers)
is allowed.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select, text
from sqlalchemy.engine import Engine

from auth.models import AdminCredential
from core.db import make_engine, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AdminStore:
    """Repository for AdminCredential records.

    Usage:
        store = AdminStore("sqlite:///portfolio.db")
        store.create_admin(AdminCredential(username="admin", hashed_password=hash_password("secret")))
        admin = store.get_by_username("admin")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def has_admins(self) -> bool:
        """Return True if at least one admin record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_admins)).scalar()
        return (result or 0) > 0

    def first_admin(self) -> AdminCredential | None:
        """Return the oldest admin record, or None on a fresh database."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().order_by(_admins.c.id).limit(1)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def create_admin(self, admin: AdminCredential) -> int:
        """Insert a new admin and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _admins.insert().values(
                    username=admin.username,
                    hashed_password=admin.hashed_password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> AdminCredential | None:
        """Look up an admin by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.username == username)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_by_id(self, admin_id: int) -> AdminCredential | None:
        """Look up an admin by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def update_password(self, username: str, hashed_password: str) -> bool:
        """Replace the stored hash for username.

        Returns True if a row was updated, False if the username was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _admins.update()
                .where(_admins.c.username == username)
                .values(hashed_password=hashed_password, updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /api/health."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_admin(row) -> AdminCredential:
    return AdminCredential(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
