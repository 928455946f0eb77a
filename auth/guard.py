"""
auth/guard.py -- Route Guard for the admin section.

Every request whose path is /admin or lives under /admin/ passes through
AdminGuardMiddleware before routing:

  login path (/admin/login)        -> always passed through (no redirect loop)
  no admin_token cookie            -> 302 /admin/login
  cookie fails TokenService.verify -> 302 /admin/login + cookie deleted
  cookie verifies                  -> request proceeds unmodified

The guard is stateless: it never touches the credential store and keeps no
memory between requests. It does not inject the admin identity into the
request -- pages that need it call auth.dependencies.try_get_admin().

Deleting the cookie on a failed verify matters: otherwise the browser resends
the same broken token on every navigation.

Layer rule: no imports from api/, web/, or portfolio/.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from auth.tokens import COOKIE_NAME, TokenError, TokenService, clear_auth_cookie

logger = logging.getLogger("portfolio.auth")

ADMIN_PREFIX = "/admin"
LOGIN_PATH = "/admin/login"


def is_protected(path: str, prefix: str = ADMIN_PREFIX, login_path: str = LOGIN_PATH) -> bool:
    """Return True if path is inside the admin section and is not the login page.

    "/administrator" shares the prefix string but is a different section, so
    only the exact prefix or prefix + "/" count.
    """
    normalized = path.rstrip("/") or "/"
    if normalized == login_path:
        return False
    return normalized == prefix or normalized.startswith(prefix + "/")


class AdminGuardMiddleware(BaseHTTPMiddleware):
    """Redirect unauthenticated requests for admin pages to the login page.

    Registered by create_app() with the process TokenService:
        app.add_middleware(AdminGuardMiddleware, token_service=tokens, secure_cookies=True)
    """

    def __init__(
        self,
        app,
        token_service: TokenService,
        secure_cookies: bool = True,
        prefix: str = ADMIN_PREFIX,
        login_path: str = LOGIN_PATH,
    ) -> None:
        super().__init__(app)
        self.token_service = token_service
        self.secure_cookies = secure_cookies
        self.prefix = prefix
        self.login_path = login_path

    async def dispatch(self, request: Request, call_next):
        if not is_protected(request.url.path, self.prefix, self.login_path):
            return await call_next(request)

        token = request.cookies.get(COOKIE_NAME)
        if not token:
            return RedirectResponse(self.login_path, status_code=302)

        try:
            self.token_service.verify(token)
        except TokenError as exc:
            logger.info(
                "Rejected admin session on %s (%s)",
                request.url.path,
                type(exc).__name__,
            )
            resp = RedirectResponse(self.login_path, status_code=302)
            clear_auth_cookie(resp, secure=self.secure_cookies)
            return resp

        return await call_next(request)
