"""
portfolio/models.py -- Domain dataclasses for the public site content.

These are pure data containers with zero logic. Persistence and ordering rules
live in portfolio/store.py; HTTP shapes live in api/models.py.
"""

from dataclasses import dataclass, field
from typing import Optional

# Tri-state flag shown to visitors. Mutated only by the admin.
AVAILABILITY_STATUSES = ("available", "partially", "unavailable")
DEFAULT_AVAILABILITY = "available"


@dataclass
class Project:
    """One entry in the project catalogue.

    title and description are localized: {"fr": ..., "en": ...}.
    image is an opaque URL (or data URL) chosen by the admin.

    id is None before the record is written to the database.
    """

    title: dict[str, str]
    description: dict[str, str]
    image: str
    technologies: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    link: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class AvailabilityRecord:
    """One status change. Records are only ever appended; the newest wins."""

    status: str  # "available" | "partially" | "unavailable"
    id: Optional[int] = None
    created_at: str = ""


@dataclass
class ContactMessage:
    """A message submitted through the public contact form.

    Only the attachment's filename is kept; the file itself is relayed by
    email and never written to disk.
    """

    name: str
    email: str
    subject: str
    message: str
    attachment_name: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""
