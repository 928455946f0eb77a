"""
API request and response models for the portfolio REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in portfolio/models.py
and auth/models.py, which own the internal domain representation. Route
handlers map between the two.

Every request model here is the boundary check for its route: FastAPI
validates the body before the handler runs, and the app-wide
RequestValidationError handler turns any failure into 400 bad_request.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.passwords import MAX_PASSWORD_BYTES
from portfolio.models import Project

# Trimmed, non-empty string. Used for every field except passwords.
_NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AvailabilityEnum(str, Enum):
    available = "available"
    partially = "partially"
    unavailable = "unavailable"


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login.

    username is trimmed; password is taken verbatim (leading or trailing
    spaces are part of the secret). Both must be non-empty.
    The password is also capped at the bcrypt input limit in UTF-8 bytes.
    """

    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    password: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class LoginResponse(BaseModel):
    """Body of a successful login. The token travels in the cookie only."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Login successful"


class MeResponse(BaseModel):
    """Response for GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    admin_id: int
    username: str
    expires_at: datetime


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class LocalizedText(BaseModel):
    """A string in both site languages."""

    model_config = ConfigDict(str_strip_whitespace=True)

    fr: str = Field(min_length=1)
    en: str = Field(min_length=1)


class ProjectCreate(BaseModel):
    """Request body for POST /api/projects."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: LocalizedText
    description: LocalizedText
    image: str = Field(min_length=1)
    technologies: list[_NonBlank] = Field(min_length=1, max_length=50)
    categories: list[_NonBlank] = Field(default_factory=list, max_length=20)
    link: Optional[str] = Field(default=None, max_length=2048)


class ProjectUpdate(BaseModel):
    """Request body for PUT /api/projects/{id}.

    Partial update: omitted fields keep their stored value. link may be set
    to null explicitly to remove it; an explicit null on any other field is
    treated like an omitted field.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    image: Optional[str] = Field(default=None, min_length=1)
    technologies: Optional[list[_NonBlank]] = Field(default=None, min_length=1, max_length=50)
    categories: Optional[list[_NonBlank]] = Field(default=None, max_length=20)
    link: Optional[str] = Field(default=None, max_length=2048)

    def changes(self) -> dict:
        """Return the fields to write, following the partial-update rules above."""
        updates: dict = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name != "link":
                continue
            if isinstance(value, LocalizedText):
                value = value.model_dump()
            updates[name] = value
        return updates


class ProjectResponse(BaseModel):
    """One project as served by the API."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: dict[str, str]
    description: dict[str, str]
    image: str
    technologies: list[str]
    categories: list[str]
    link: Optional[str]

    @classmethod
    def from_project(cls, project: Project) -> "ProjectResponse":
        """Build a ProjectResponse from the domain dataclass.

        Factory Method -- the mapping lives here, colocated with the output
        model, rather than repeated in each route handler.
        """
        return cls(
            id=project.id,
            title=project.title,
            description=project.description,
            image=project.image,
            technologies=project.technologies,
            categories=project.categories,
            link=project.link,
        )


class ProjectListResponse(BaseModel):
    """Response for GET /api/projects. The "member" key is what the pages consume."""

    model_config = ConfigDict(frozen=True)

    member: list[ProjectResponse]


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: AvailabilityEnum


class AvailabilityUpdate(BaseModel):
    """Request body for PUT /api/availability."""

    status: AvailabilityEnum


class AvailabilityUpdatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "Availability status updated successfully"
    status: AvailabilityEnum


# ---------------------------------------------------------------------------
# Contact
# ---------------------------------------------------------------------------


class ContactResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
