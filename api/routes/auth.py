"""
api/routes/auth.py -- Admin session endpoints.

Routes:
  POST /api/auth/login   -- password login; sets the admin_token cookie
  POST /api/auth/logout  -- clears the cookie; 200
  GET  /api/auth/me      -- claims of the current session (requires auth)

Security:
  POST /login is rate-limited to 10 requests/minute per IP.
  authenticate_admin() provides timing equalization -- use it, never inline.
  Cache-Control: no-store on login responses.
  The token travels in the HttpOnly cookie only, never in the response body.
"""


from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MeResponse
from auth.dependencies import require_admin
from auth.models import SessionClaims
from auth.passwords import authenticate_admin
from auth.store import AdminStore
from auth.tokens import TokenService, clear_auth_cookie, set_auth_cookie
from core.config import Settings

# Auth policy:
# - POST /api/auth/login:   public -- login endpoint must be unauthenticated
# - POST /api/auth/logout:  public -- clearing a cookie needs no prior auth
# - GET  /api/auth/me:      requires auth (require_admin)
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; set the admin_token cookie.

    Uses authenticate_admin() which includes timing equalization. Do NOT
    inline get_by_username() + verify_password() -- that re-introduces the
    timing attack.

    Returns the same generic error for wrong username and wrong password
    ("bad_credentials") to avoid leaking username existence information.
    """
    store: AdminStore = request.app.state.admin_store
    settings: Settings = request.app.state.settings
    admin = authenticate_admin(store, body.username, body.password)
    if admin is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid username or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token_service: TokenService = request.app.state.token_service
    token = token_service.issue(admin.id, admin.username)
    resp = JSONResponse(status_code=200, content=LoginResponse().model_dump())
    set_auth_cookie(resp, token, max_age=settings.token_expire_seconds, secure=settings.secure_cookies)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout")
async def logout(request: Request) -> JSONResponse:
    """Clear the admin_token cookie and end the session."""
    settings: Settings = request.app.state.settings
    resp = JSONResponse(content={"success": True, "message": "Logged out."})
    clear_auth_cookie(resp, secure=settings.secure_cookies)
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(claims: SessionClaims = Depends(require_admin)) -> MeResponse:
    """Return identity information for the current admin session."""
    return MeResponse(admin_id=claims.subject_id, username=claims.username, expires_at=claims.expires_at)
