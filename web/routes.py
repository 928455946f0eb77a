"""
web/routes.py -- Jinja2 template routes for the portfolio site.

These routes serve server-rendered HTML. They share app.state with the API
routes (same PortfolioStore, TokenService) but return HTML instead of JSON.
Forms on these pages submit to the JSON API with fetch(); no page handles a
POST itself.

The admin pages rely on auth.guard.AdminGuardMiddleware, which has already
redirected any request without a valid admin_token cookie before these
handlers run. /admin/login is exempt from the guard.

Routes:
  GET /                 -- home page with the availability badge
  GET /about            -- about page
  GET /projects         -- project listing (?lang=fr|en)
  GET /contact          -- contact form
  GET /admin/login      -- admin login form (always reachable)
  GET /admin            -- admin dashboard (guarded)
  GET /admin/dashboard  -- admin dashboard (guarded)
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import try_get_admin
from portfolio.models import AVAILABILITY_STATUSES
from portfolio.store import PortfolioStore

logger = logging.getLogger("portfolio.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
# Expose try_get_admin as a Jinja2 global so base.html can show the admin
# link without every handler passing the session in its context.
templates.env.globals["try_get_admin"] = try_get_admin
router = APIRouter()

SUPPORTED_LANGS = ("en", "fr")
DEFAULT_LANG = "en"

_AVAILABILITY_LABELS: dict[str, dict[str, str]] = {
    "available": {"en": "Available for new projects", "fr": "Disponible pour de nouveaux projets"},
    "partially": {"en": "Partially available", "fr": "Partiellement disponible"},
    "unavailable": {"en": "Currently unavailable", "fr": "Actuellement indisponible"},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lang(value: Optional[str]) -> str:
    """Return a supported language code; anything else falls back to English."""
    return value if value in SUPPORTED_LANGS else DEFAULT_LANG


def _render(request: Request, name: str, lang: str, **context) -> HTMLResponse:
    return templates.TemplateResponse(request, name, {"lang": lang, **context})


# ---------------------------------------------------------------------------
# Public pages
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request, lang: Optional[str] = None) -> HTMLResponse:
    lang = _lang(lang)
    store: PortfolioStore = request.app.state.portfolio
    status = store.get_availability()
    return _render(
        request,
        "home.html",
        lang,
        availability=status,
        availability_label=_AVAILABILITY_LABELS[status][lang],
    )


@router.get("/about", response_class=HTMLResponse)
def about(request: Request, lang: Optional[str] = None) -> HTMLResponse:
    return _render(request, "about.html", _lang(lang))


@router.get("/projects", response_class=HTMLResponse)
def projects(request: Request, lang: Optional[str] = None) -> HTMLResponse:
    """Project listing in the requested language."""
    lang = _lang(lang)
    store: PortfolioStore = request.app.state.portfolio
    rows = [
        {
            "title": p.title.get(lang, ""),
            "description": p.description.get(lang, ""),
            "image": p.image,
            "technologies": p.technologies,
            "categories": p.categories,
            "link": p.link,
        }
        for p in store.list_projects()
    ]
    return _render(request, "projects.html", lang, projects=rows)


@router.get("/contact", response_class=HTMLResponse)
def contact(request: Request, lang: Optional[str] = None) -> HTMLResponse:
    settings = request.app.state.settings
    return _render(
        request,
        "contact.html",
        _lang(lang),
        max_attachment_mb=settings.max_attachment_bytes // (1024 * 1024),
    )


# ---------------------------------------------------------------------------
# Admin pages
# ---------------------------------------------------------------------------


@router.get("/admin/login", response_class=HTMLResponse)
def admin_login(request: Request) -> HTMLResponse:
    """Login form. Posts JSON to /api/auth/login and navigates on success."""
    return _render(request, "admin_login.html", DEFAULT_LANG)


@router.get("/admin", response_class=HTMLResponse)
@router.get("/admin/dashboard", response_class=HTMLResponse)
def admin_dashboard(request: Request) -> HTMLResponse:
    """Project and availability management.

    Reached only with a valid session: the guard middleware redirects
    everything else to /admin/login.
    """
    store: PortfolioStore = request.app.state.portfolio
    claims = try_get_admin(request)
    return _render(
        request,
        "admin_dashboard.html",
        DEFAULT_LANG,
        username=claims.username if claims else "",
        projects=store.list_projects(),
        availability=store.get_availability(),
        statuses=AVAILABILITY_STATUSES,
    )
