"""
api/main.py -- FastAPI application factory for the portfolio site.

create_app(settings) builds the whole HTTP surface from one explicit Settings
object. Nothing below reads configuration from the environment or from a
module global: the TokenService, stores, and mailer are all constructed here
from `settings` and attached to app.state for the lifetime of the process.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests          -- method, path, status, latency
  2. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  3. CORSMiddleware        -- adds CORS headers for allowed browser origins
  4. SlowAPIMiddleware     -- slowapi hook; per-route limits are the @limiter.limit decorators
  5. AdminGuardMiddleware  -- redirects unauthenticated /admin/* to /admin/login

Lifespan handles startup (open stores) and shutdown (dispose engines)
symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.availability import router as availability_router
from api.routes.contact import router as contact_router
from api.routes.projects import router as projects_router
from auth.guard import AdminGuardMiddleware
from auth.store import AdminStore
from auth.tokens import TokenService
from core.config import Settings
from core.mailer import Mailer
from portfolio.store import PortfolioStore

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("portfolio.api")


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


def create_app(settings: Settings) -> FastAPI:
    """Build the FastAPI application for the given settings.

    asgi.py calls this with get_settings(); tests call it with an explicit
    Settings(...) pointing at in-memory databases.
    """

    # -----------------------------------------------------------------------
    # Lifespan -- stores live exactly as long as the server
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Portfolio API starting up")
        app.state.admin_store = AdminStore(settings.database_url)
        app.state.portfolio = PortfolioStore(settings.database_url)
        app.state.mailer = Mailer(settings)
        if not app.state.admin_store.has_admins():
            logger.warning("No admin account exists yet -- run `python main.py create-admin`")

        yield

        app.state.admin_store.close()
        app.state.portfolio.close()
        logger.info("Portfolio API shutdown complete")

    app = FastAPI(
        title="Portfolio API",
        description="Public portfolio content and the admin session endpoints.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    token_service = TokenService(settings.jwt_secret, settings.token_expire_seconds)
    app.state.settings = settings
    app.state.token_service = token_service
    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

    # -----------------------------------------------------------------------
    # Middleware stack
    #
    # Starlette wraps each add_middleware() call around everything added
    # before it, so the LAST registration is the OUTERMOST layer. Register
    # innermost first: guard -> SlowAPI -> CORS -> TrustedHost.
    # -----------------------------------------------------------------------

    app.add_middleware(
        AdminGuardMiddleware,
        token_service=token_service,
        secure_cookies=settings.secure_cookies,
    )
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # -----------------------------------------------------------------------
    # Request logging middleware
    #
    # @app.middleware("http") is registered last, which makes it the
    # outermost layer: guard redirects, 429s and host rejections are logged
    # with the same line format as routed requests.
    # -----------------------------------------------------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        # Unhandled errors propagate through call_next and become a 500 outside.
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s %d %.1fms %s",
                request.method,
                request.url.path,
                status_code,
                ms,
                request.client.host if request.client else "unknown",
            )

    # -----------------------------------------------------------------------
    # Router registration
    # -----------------------------------------------------------------------

    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(projects_router, prefix="/api", tags=["Projects"])
    app.include_router(availability_router, prefix="/api", tags=["Availability"])
    app.include_router(contact_router, prefix="/api", tags=["Contact"])
    # Web UI router is mounted by asgi.py, not here.

    # -----------------------------------------------------------------------
    # Exception handlers
    #
    # All handlers return the same ErrorResponse envelope so API clients can
    # parse errors uniformly.
    # -----------------------------------------------------------------------

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with a structured error when a rate limit is exceeded.

        Plain def: SlowAPIMiddleware calls this handler directly, outside
        Starlette's exception middleware.
        """
        # The window length of the limit that tripped, e.g. 60 for "10/minute".
        retry_after = exc.limit.limit.get_expiry()
        response = _error(429, "rate_limited", "Too many requests.", str(exc.detail))
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 for every malformed or incomplete request.

        Missing fields, empty strings, bad JSON, and unknown enum values are
        all the caller's to fix, so they share one status and code.
        """
        fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()} - {""})
        return _error(
            400,
            "bad_request",
            "Request validation failed.",
            f"Invalid or missing fields: {', '.join(fields)}" if fields else None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        Route handlers raise HTTPException with detail={"code", "message"}.
        When detail is already a structured dict, use it directly as the
        error field rather than stringifying it.
        """
        if isinstance(exc.detail, dict):
            response = JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
        else:
            response = _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception goes to the log only, never to the response body.
        The client receives only a generic message.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error(500, "internal_error", "An unexpected error occurred.")

    # -----------------------------------------------------------------------
    # Health endpoint
    #
    # Defined here (not in a router) so it is always reachable regardless of
    # router registration state. No rate limit applied.
    # -----------------------------------------------------------------------

    @app.get("/api/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness plus a database round-trip check.

        Reports component state only -- never connection strings or whether
        secrets are set.
        """
        components = {"app": "ok"}
        try:
            request.app.state.admin_store.ping()
            request.app.state.portfolio.ping()
            components["database"] = "ok"
        except SQLAlchemyError:
            logger.exception("Health check database ping failed")
            components["database"] = "error"
        status = "healthy" if components["database"] == "ok" else "degraded"
        return HealthResponse(status=status, version=VERSION, components=components)

    return app
