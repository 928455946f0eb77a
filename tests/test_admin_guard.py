"""
tests/test_admin_guard.py -- Integration tests for the /admin route guard.

These tests exercise AdminGuardMiddleware end-to-end through the real ASGI
stack using the web_client fixture (follow_redirects=False). We assert on
redirect Location headers directly -- following the redirect would hide them.

Coverage:
  - No cookie -> 302 /admin/login
  - Tampered, wrong-key, or expired token -> 302 /admin/login and cookie cleared
  - Valid token -> request proceeds (200)
  - /admin/login is always reachable, with or without a cookie
  - Paths that only share the prefix (/administrator) are not guarded
  - is_protected() path matching

Why integration tests over unit tests:
  The guard is a safety-critical path. Mocking it would confirm the mock
  works, not the real code. Running through ASGI catches regressions where
  the middleware is dropped from create_app() or the cookie name changes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth.guard import is_protected
from auth.tokens import COOKIE_NAME, TokenService


def _set_cookies(resp) -> list[str]:
    return resp.headers.get_list("set-cookie")


def _cookie_cleared(resp) -> bool:
    return any(h.startswith(f'{COOKIE_NAME}=""') and "Max-Age=0" in h for h in _set_cookies(resp))


class TestGuardRedirects:
    @pytest.mark.parametrize("path", ["/admin", "/admin/", "/admin/dashboard"])
    def test_no_cookie_redirects_to_login(self, web_client: TestClient, path: str) -> None:
        resp = web_client.get(path)
        assert resp.status_code == 302
        assert resp.headers["location"] == "/admin/login"

    def test_unknown_admin_path_is_guarded_before_routing(self, web_client: TestClient) -> None:
        # No route exists here; the guard still answers first.
        resp = web_client.get("/admin/does-not-exist")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/admin/login"

    def test_no_cookie_redirect_does_not_touch_cookies(self, web_client: TestClient) -> None:
        assert _set_cookies(web_client.get("/admin/dashboard")) == []

    def test_garbage_token_redirects_and_clears(self, web_client: TestClient) -> None:
        web_client.cookies.set(COOKIE_NAME, "garbage")
        resp = web_client.get("/admin/dashboard")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/admin/login"
        assert _cookie_cleared(resp)

    def test_wrong_key_token_redirects_and_clears(self, web_client: TestClient) -> None:
        forged = TokenService("attacker-secret-0123456789abcdef01234").issue(1, "admin")
        web_client.cookies.set(COOKIE_NAME, forged)
        resp = web_client.get("/admin/dashboard")
        assert resp.status_code == 302
        assert _cookie_cleared(resp)

    def test_expired_token_redirects_and_clears(self, web_client: TestClient, app: FastAPI) -> None:
        secret = app.state.settings.jwt_secret
        past = datetime.now(timezone.utc) - timedelta(days=2)
        stale = TokenService(secret, 86400, clock=lambda: past).issue(1, "admin")
        web_client.cookies.set(COOKIE_NAME, stale)
        resp = web_client.get("/admin/dashboard")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/admin/login"
        assert _cookie_cleared(resp)


class TestGuardAllows:
    def test_valid_session_reaches_dashboard(self, web_client: TestClient, login) -> None:
        assert login(web_client).status_code == 200
        resp = web_client.get("/admin/dashboard")
        assert resp.status_code == 200
        assert "Signed in as" in resp.text
        assert "admin" in resp.text

    def test_valid_session_reaches_admin_root(self, web_client: TestClient, login) -> None:
        login(web_client)
        assert web_client.get("/admin").status_code == 200

    def test_token_minted_with_app_secret_is_accepted(self, web_client: TestClient, app: FastAPI) -> None:
        web_client.cookies.set(COOKIE_NAME, app.state.token_service.issue(1, "admin"))
        assert web_client.get("/admin/dashboard").status_code == 200


class TestLoginPageExempt:
    def test_login_page_without_cookie(self, web_client: TestClient) -> None:
        resp = web_client.get("/admin/login")
        assert resp.status_code == 200
        assert "/api/auth/login" in resp.text

    def test_login_page_with_invalid_cookie(self, web_client: TestClient) -> None:
        web_client.cookies.set(COOKIE_NAME, "garbage")
        resp = web_client.get("/admin/login")
        assert resp.status_code == 200
        assert not _cookie_cleared(resp)

    def test_login_page_with_valid_cookie(self, web_client: TestClient, login) -> None:
        login(web_client)
        assert web_client.get("/admin/login").status_code == 200


class TestPublicPagesUnaffected:
    @pytest.mark.parametrize("path", ["/", "/about", "/projects", "/contact"])
    def test_public_pages_without_cookie(self, web_client: TestClient, path: str) -> None:
        assert web_client.get(path).status_code == 200

    def test_prefix_lookalike_is_not_guarded(self, web_client: TestClient) -> None:
        # No such page exists, so the router answers 404 -- not a guard redirect.
        assert web_client.get("/administrator").status_code == 404


class TestIsProtected:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/admin", True),
            ("/admin/", True),
            ("/admin/dashboard", True),
            ("/admin/projects/1/edit", True),
            ("/admin/login", False),
            ("/admin/login/", False),
            ("/administrator", False),
            ("/", False),
            ("/api/projects", False),
            ("/projects", False),
        ],
    )
    def test_paths(self, path: str, expected: bool) -> None:
        assert is_protected(path) is expected
