"""
auth/tokens.py -- Session token service and cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry
       the admin id, username, issue time, and expiry. verify() raises a
       TokenError subclass on any failure -- the Route Guard turns that into a
       redirect, the API dependency into a 401.

  Expiry: checked here against an injectable clock rather than inside jose.
       jose is asked to verify the signature only (verify_exp=False); the
       signature is therefore always checked first, and a tampered token that
       is also expired reports InvalidSignature.

  No revocation list: tokens are stateless and die at exp. Logout clears the
       cookie client-side only.

  Secret: supplied by the caller from Settings. Nothing in this module reads
       configuration on its own.

Layer rule: no imports from api/, web/, or portfolio/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import SessionClaims

logger = logging.getLogger("portfolio.auth")

ALGORITHM = "HS256"
COOKIE_NAME = "admin_token"
DEFAULT_LIFETIME_SECONDS = 24 * 60 * 60


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for every reason a session token is rejected."""


class InvalidSignature(TokenError):
    """Signature mismatch, wrong algorithm, malformed token, or missing claims."""


class Expired(TokenError):
    """Signature is valid but the current time is past the embedded expiry."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_canonical(token: str) -> bool:
    """True when every segment is unpadded base64url that re-encodes to itself.

    base64 decoding ignores the spare low bits of the final character, so
    several spellings of a segment decode to the same bytes. Only the one
    the token was issued with is accepted.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return False
    try:
        return all(base64url_encode(base64url_decode(p.encode("ascii"))) == p.encode("ascii") for p in parts)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TokenService:
    """Issue and verify signed, time-limited admin session tokens.

    Usage:
        tokens = TokenService(settings.jwt_secret, settings.token_expire_seconds)
        token = tokens.issue(admin.id, admin.username)
        claims = tokens.verify(token)   # raises InvalidSignature / Expired

    Constructed once at startup by create_app() and shared read-only for the
    process lifetime. clock is injectable so tests can move time forward.
    """

    def __init__(
        self,
        secret: str,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret.")
        if lifetime_seconds <= 0:
            raise ValueError("lifetime_seconds must be positive.")
        self._secret = secret
        self.lifetime_seconds = lifetime_seconds
        self._clock = clock

    def issue(self, subject_id: int, username: str) -> str:
        """Return a signed token for the given admin, valid for lifetime_seconds."""
        issued_at = self._clock()
        expires_at = issued_at + timedelta(seconds=self.lifetime_seconds)
        payload = {
            "sub": username,
            "admin_id": subject_id,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """Return the verified claims or raise InvalidSignature / Expired."""
        if not _is_canonical(token):
            raise InvalidSignature("Token is not canonically encoded.")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc

        subject_id = payload.get("admin_id")
        username = payload.get("sub")
        iat = payload.get("iat")
        exp = payload.get("exp")
        if (
            not isinstance(subject_id, int)
            or not isinstance(username, str)
            or not isinstance(iat, int)
            or not isinstance(exp, int)
        ):
            raise InvalidSignature("Token is missing required claims.")

        if self._clock().timestamp() > exp:
            raise Expired("Token expired.")

        return SessionClaims(
            subject_id=subject_id,
            username=username,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, *, max_age: int, secure: bool) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="strict": never sent on cross-site requests (CSRF mitigation).
    secure: only sent over HTTPS when secure cookies are enabled (production).
    max_age: matches the token lifetime so both expire together.
    path="/": the API and the admin pages both need it.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="strict",
        secure=secure,
        max_age=max_age,
        path="/",
    )


def clear_auth_cookie(response, *, secure: bool) -> None:
    """Delete the session cookie. Attributes must match the ones it was set with."""
    response.delete_cookie(
        COOKIE_NAME,
        path="/",
        secure=secure,
        httponly=True,
        samesite="strict",
    )
