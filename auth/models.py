"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in portfolio/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/, web/, core/, or portfolio/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class AdminCredential:
    """The single privileged operator account.

    hashed_password is a bcrypt hash. It is excluded from repr() so the hash
    never ends up in a log line or traceback that prints the object.
    """

    username: str
    hashed_password: str = field(repr=False)
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SessionClaims:
    """Verified contents of a session token.

    Never persisted. Produced by TokenService.verify() after the signature and
    expiry checks have both passed.
    """

    subject_id: int
    username: str
    issued_at: datetime
    expires_at: datetime
