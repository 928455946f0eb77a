"""
api/routes/projects.py -- Project listing and admin CRUD.

Routes:
  GET    /api/projects       -- all projects, newest first (public)
  POST   /api/projects       -- create; 201 (requires auth)
  PUT    /api/projects/{id}  -- partial update (requires auth)
  DELETE /api/projects/{id}  -- delete; 204 (requires auth)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.models import ProjectCreate, ProjectListResponse, ProjectResponse, ProjectUpdate
from auth.dependencies import require_admin
from auth.models import SessionClaims
from portfolio.models import Project
from portfolio.store import PortfolioStore

# Auth policy:
# - GET    /api/projects:       public -- the projects page reads this
# - POST   /api/projects:       requires auth (require_admin)
# - PUT    /api/projects/{id}:  requires auth (require_admin)
# - DELETE /api/projects/{id}:  requires auth (require_admin)
router = APIRouter()


def _not_found(project_id: int) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"code": "not_found", "message": f"Project {project_id} not found."},
    )


@router.get("/projects", response_model=ProjectListResponse)
def list_projects(request: Request) -> ProjectListResponse:
    store: PortfolioStore = request.app.state.portfolio
    return ProjectListResponse(member=[ProjectResponse.from_project(p) for p in store.list_projects()])


@router.post("/projects", response_model=ProjectResponse, status_code=201)
def create_project(
    request: Request,
    body: ProjectCreate,
    _: SessionClaims = Depends(require_admin),
) -> ProjectResponse:
    """Create a project and return it as stored."""
    store: PortfolioStore = request.app.state.portfolio
    project = Project(
        title=body.title.model_dump(),
        description=body.description.model_dump(),
        image=body.image,
        technologies=list(body.technologies),
        categories=list(body.categories),
        link=body.link,
    )
    project_id = store.create_project(project)
    return ProjectResponse.from_project(store.get_project(project_id))


@router.put("/projects/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    request: Request,
    body: ProjectUpdate,
    _: SessionClaims = Depends(require_admin),
) -> ProjectResponse:
    """Apply a partial update. Fields absent from the body keep their value."""
    store: PortfolioStore = request.app.state.portfolio
    if not store.update_project(project_id, **body.changes()):
        raise _not_found(project_id)
    return ProjectResponse.from_project(store.get_project(project_id))


@router.delete("/projects/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    request: Request,
    _: SessionClaims = Depends(require_admin),
) -> Response:
    store: PortfolioStore = request.app.state.portfolio
    if not store.delete_project(project_id):
        raise _not_found(project_id)
    return Response(status_code=204)
