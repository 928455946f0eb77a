"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The admin_token cookie is the only accepted credential. It is set by
POST /api/auth/login and verified with the TokenService that create_app()
placed on app.state.

try_get_admin() is the soft variant (returns None on failure).
require_admin() wraps it and raises HTTP 401 if unauthenticated.

API routes use require_admin() and answer 401 JSON. Admin HTML pages are
protected earlier by auth.guard.AdminGuardMiddleware, which redirects instead.

Layer rule: no imports from web/ or portfolio/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import SessionClaims
from auth.tokens import COOKIE_NAME, TokenError, TokenService


def try_get_admin(request: Request) -> SessionClaims | None:
    """Return the verified session claims for this request, or None.

    Never raises -- callers that need a hard 401 should use require_admin().
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return None
    token_service: TokenService = request.app.state.token_service
    try:
        return token_service.verify(token)
    except TokenError:
        return None


def require_admin(request: Request) -> SessionClaims:
    """Require an admin session. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.post("/projects")
        def route(admin: SessionClaims = Depends(require_admin)): ...
    """
    claims = try_get_admin(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return claims
