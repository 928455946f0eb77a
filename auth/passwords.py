"""
auth/passwords.py -- Password hashing and admin credential checks.

Passwords: bcrypt, used directly (no passlib wrapper). bcrypt salts every
hash and its checkpw() comparison is constant-time, so neither the stored
hash nor the comparison leaks how close a guess was.

The _DUMMY_HASH constant enables timing equalization in authenticate_admin()
so response time does not reveal whether a username exists.

Layer rule: no imports from api/, web/, or portfolio/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import AdminCredential
    from auth.store import AdminStore

logger = logging.getLogger("portfolio.auth")

MIN_PASSWORD_LENGTH = 8
# bcrypt ignores (or, in newer releases, refuses) input past this many bytes.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Callers must keep plain within MAX_PASSWORD_BYTES of UTF-8; the CLI and
    the login model both reject anything longer.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A corrupt stored hash makes bcrypt raise ValueError; that is a failed
    comparison, not a server error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored admin password hash is not a valid bcrypt hash")
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("portfolio_timing_dummy")


def authenticate_admin(store: AdminStore, username: str, password: str) -> AdminCredential | None:
    """Check a username/password pair against the credential store.

    Always runs bcrypt whether or not the admin exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the AdminCredential on success, None on any mismatch. Store errors
    propagate -- the API layer turns them into a 500.
    """
    admin = store.get_by_username(username)
    if admin is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, admin.hashed_password):
        return None
    return admin
