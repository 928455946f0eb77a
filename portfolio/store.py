"""
portfolio/store.py -- SQLAlchemy-backed persistence for site content.

Uses SQLAlchemy Core (not ORM) so the dataclasses in portfolio/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change.

Pattern: Repository + Data Mapper. PortfolioStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Storage notes:
  Localized text ({"fr", "en"}) and string lists are JSON-serialized into
  Text columns.
  availability is append-only: set_availability() inserts, get_availability()
  reads the newest row. The full history stays queryable.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = PortfolioStore("sqlite:///portfolio.db")
    project_id = store.create_project(project)
    projects = store.list_projects()
    store.set_availability("partially")
    store.close()
"""

import json
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine

from core.db import make_engine, now_iso
from portfolio.models import (
    AVAILABILITY_STATUSES,
    DEFAULT_AVAILABILITY,
    AvailabilityRecord,
    ContactMessage,
    Project,
)

# Fields PUT /api/projects/{id} may change. Anything else passed to
# update_project() is a programming error.
_UPDATABLE_PROJECT_FIELDS = {"title", "description", "image", "technologies", "categories", "link"}
_JSON_PROJECT_FIELDS = {"title", "description", "technologies", "categories"}

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),  # JSON {"fr", "en"}
    Column("description", Text, nullable=False),  # JSON {"fr", "en"}
    Column("image", Text, nullable=False),
    Column("technologies", Text, nullable=False),  # JSON array
    Column("categories", Text, nullable=False),  # JSON array
    Column("link", Text),
    Column("created_at", String(32), nullable=False),
)

_availability = Table(
    "availability",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("status", String(20), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_contact_messages = Table(
    "contact_messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("subject", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("attachment_name", String(255)),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PortfolioStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[Project]:
        """Return every project, newest first. id breaks created_at ties."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _projects.select().order_by(_projects.c.created_at.desc(), _projects.c.id.desc())
            ).fetchall()
        return [_row_to_project(r) for r in rows]

    def get_project(self, project_id: int) -> Optional[Project]:
        with self.engine.connect() as conn:
            row = conn.execute(_projects.select().where(_projects.c.id == project_id)).fetchone()
        return _row_to_project(row) if row is not None else None

    def create_project(self, project: Project) -> int:
        """Insert a project and return its new id."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _projects.insert().values(
                    title=json.dumps(project.title),
                    description=json.dumps(project.description),
                    image=project.image,
                    technologies=json.dumps(project.technologies),
                    categories=json.dumps(project.categories),
                    link=project.link,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_project(self, project_id: int, **fields) -> bool:
        """Update the given fields on a project.

        Returns True if a row was updated, False if project_id was not found.
        Unknown field names raise ValueError (fail fast, never build SQL from them).
        """
        unknown = set(fields) - _UPDATABLE_PROJECT_FIELDS
        if unknown:
            raise ValueError(f"Unknown project fields: {unknown!r}")
        if not fields:
            return self.get_project(project_id) is not None
        values = {k: (json.dumps(v) if k in _JSON_PROJECT_FIELDS else v) for k, v in fields.items()}
        with self.engine.connect() as conn:
            result = conn.execute(_projects.update().where(_projects.c.id == project_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_project(self, project_id: int) -> bool:
        """Delete a project. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_projects.delete().where(_projects.c.id == project_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def get_availability(self) -> str:
        """Return the newest status, or "available" if none was ever set."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _availability.select()
                .order_by(_availability.c.created_at.desc(), _availability.c.id.desc())
                .limit(1)
            ).fetchone()
        return row.status if row is not None else DEFAULT_AVAILABILITY

    def set_availability(self, status: str) -> AvailabilityRecord:
        """Append a new availability record. Raises ValueError on an unknown status."""
        if status not in AVAILABILITY_STATUSES:
            raise ValueError(f"Invalid availability status: {status!r}")
        created_at = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_availability.insert().values(status=status, created_at=created_at))
            conn.commit()
        return AvailabilityRecord(status=status, id=result.inserted_primary_key[0], created_at=created_at)

    def availability_history(self) -> list[AvailabilityRecord]:
        """Return every status change, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _availability.select().order_by(_availability.c.created_at.desc(), _availability.c.id.desc())
            ).fetchall()
        return [AvailabilityRecord(status=r.status, id=r.id, created_at=r.created_at) for r in rows]

    # ------------------------------------------------------------------
    # Contact messages
    # ------------------------------------------------------------------

    def save_contact_message(self, msg: ContactMessage) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _contact_messages.insert().values(
                    name=msg.name,
                    email=msg.email,
                    subject=msg.subject,
                    message=msg.message,
                    attachment_name=msg.attachment_name,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def list_contact_messages(self) -> list[ContactMessage]:
        """Return received messages, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _contact_messages.select().order_by(
                    _contact_messages.c.created_at.desc(), _contact_messages.c.id.desc()
                )
            ).fetchall()
        return [_row_to_contact(r) for r in rows]

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_project(row) -> Project:
    return Project(
        id=row.id,
        title=json.loads(row.title),
        description=json.loads(row.description),
        image=row.image,
        technologies=json.loads(row.technologies),
        categories=json.loads(row.categories),
        link=row.link,
        created_at=row.created_at,
    )


def _row_to_contact(row) -> ContactMessage:
    return ContactMessage(
        id=row.id,
        name=row.name,
        email=row.email,
        subject=row.subject,
        message=row.message,
        attachment_name=row.attachment_name,
        created_at=row.created_at,
    )
