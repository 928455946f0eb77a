"""
tests/test_tokens.py -- Unit tests for auth.tokens.TokenService and cookie helpers.

Covers:
  - issue/verify round trip carries subject id and username
  - expiry is iat + lifetime, checked against the injected clock
  - tampered payload or signature -> InvalidSignature
  - any other final character in a segment -> InvalidSignature
  - wrong secret -> InvalidSignature
  - signature is checked before expiry
  - missing claims -> InvalidSignature
  - cookie attributes (HttpOnly, SameSite=Strict, Secure, Max-Age, Path)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.responses import JSONResponse
from jose import jwt

from auth.tokens import (
    ALGORITHM,
    COOKIE_NAME,
    Expired,
    InvalidSignature,
    TokenError,
    TokenService,
    clear_auth_cookie,
    set_auth_cookie,
)

B64URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
SECRET = "unit-test-secret-0123456789abcdef0123"
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def service(clock: FakeClock) -> TokenService:
    return TokenService(SECRET, 86400, clock=clock)


def _tamper(segment: str) -> str:
    # Flip a character in the middle; the last base64 char of a segment can
    # carry unused bits and decode to the same bytes.
    i = len(segment) // 2
    return segment[:i] + ("A" if segment[i] != "A" else "B") + segment[i + 1 :]


class TestIssueVerify:
    def test_round_trip(self, service: TokenService) -> None:
        claims = service.verify(service.issue(7, "admin"))
        assert claims.subject_id == 7
        assert claims.username == "admin"
        assert claims.issued_at == T0
        assert claims.expires_at == T0 + timedelta(seconds=86400)

    def test_payload_claims(self, service: TokenService) -> None:
        payload = jwt.decode(service.issue(3, "alice"), SECRET, algorithms=[ALGORITHM], options={"verify_exp": False})
        assert payload["sub"] == "alice"
        assert payload["admin_id"] == 3
        assert payload["exp"] - payload["iat"] == 86400

    def test_valid_just_before_expiry(self, service: TokenService, clock: FakeClock) -> None:
        token = service.issue(1, "admin")
        clock.advance(86400 - 1)
        assert service.verify(token).username == "admin"

    def test_valid_at_exact_expiry_second(self, service: TokenService, clock: FakeClock) -> None:
        token = service.issue(1, "admin")
        clock.advance(86400)
        assert service.verify(token).subject_id == 1

    def test_expired_after_lifetime(self, service: TokenService, clock: FakeClock) -> None:
        token = service.issue(1, "admin")
        clock.advance(86400 + 1)
        with pytest.raises(Expired):
            service.verify(token)

    def test_custom_lifetime(self, clock: FakeClock) -> None:
        service = TokenService(SECRET, 60, clock=clock)
        token = service.issue(1, "admin")
        clock.advance(61)
        with pytest.raises(Expired):
            service.verify(token)


class TestRejection:
    def test_tampered_payload(self, service: TokenService) -> None:
        header, payload, sig = service.issue(1, "admin").split(".")
        with pytest.raises(InvalidSignature):
            service.verify(".".join([header, _tamper(payload), sig]))

    def test_tampered_signature(self, service: TokenService) -> None:
        header, payload, sig = service.issue(1, "admin").split(".")
        with pytest.raises(InvalidSignature):
            service.verify(".".join([header, payload, _tamper(sig)]))

    def test_wrong_secret(self, service: TokenService, clock: FakeClock) -> None:
        other = TokenService("another-secret-0123456789abcdef012345", clock=clock)
        with pytest.raises(InvalidSignature):
            service.verify(other.issue(1, "admin"))

    @pytest.mark.parametrize("segment", [0, 1, 2])
    def test_altered_final_character(self, service: TokenService, segment: int) -> None:
        parts = service.issue(1, "admin").split(".")
        original = parts[segment]
        for ch in B64URL_ALPHABET.replace(original[-1], ""):
            parts[segment] = original[:-1] + ch
            with pytest.raises(InvalidSignature):
                service.verify(".".join(parts))

    def test_padded_segment_rejected(self, service: TokenService) -> None:
        header, payload, sig = service.issue(1, "admin").split(".")
        with pytest.raises(InvalidSignature):
            service.verify(".".join([header, payload, sig + "="]))

    def test_garbage(self, service: TokenService) -> None:
        with pytest.raises(InvalidSignature):
            service.verify("not-a-token")

    def test_signature_checked_before_expiry(self, service: TokenService, clock: FakeClock) -> None:
        header, payload, sig = service.issue(1, "admin").split(".")
        clock.advance(2 * 86400)
        with pytest.raises(InvalidSignature):
            service.verify(".".join([header, payload, _tamper(sig)]))

    def test_missing_claims(self, service: TokenService) -> None:
        token = jwt.encode({"sub": "admin", "exp": int(T0.timestamp()) + 60}, SECRET, algorithm=ALGORITHM)
        with pytest.raises(InvalidSignature):
            service.verify(token)

    def test_errors_share_base_class(self) -> None:
        assert issubclass(InvalidSignature, TokenError)
        assert issubclass(Expired, TokenError)


class TestConstruction:
    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenService("")

    def test_non_positive_lifetime_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenService(SECRET, 0)


class TestCookies:
    def test_set_cookie_attributes(self) -> None:
        resp = JSONResponse({})
        set_auth_cookie(resp, "tok", max_age=86400, secure=True)
        header = resp.headers["set-cookie"]
        assert header.startswith(f"{COOKIE_NAME}=tok")
        assert "HttpOnly" in header
        assert "SameSite=strict" in header
        assert "Secure" in header
        assert "Max-Age=86400" in header
        assert "Path=/" in header

    def test_set_cookie_without_secure(self) -> None:
        resp = JSONResponse({})
        set_auth_cookie(resp, "tok", max_age=86400, secure=False)
        assert "Secure" not in resp.headers["set-cookie"]

    def test_clear_cookie_expires_immediately(self) -> None:
        resp = JSONResponse({})
        clear_auth_cookie(resp, secure=False)
        header = resp.headers["set-cookie"]
        assert header.startswith(f'{COOKIE_NAME}=""')
        assert "Max-Age=0" in header
        assert "Path=/" in header
