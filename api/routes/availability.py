"""
api/routes/availability.py -- Current availability status.

Routes:
  GET /api/availability  -- current status (public)
  PUT /api/availability  -- record a new status (requires auth)

History is append-only: PUT inserts a row and GET reads the newest one.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import AvailabilityResponse, AvailabilityUpdate, AvailabilityUpdatedResponse
from auth.dependencies import require_admin
from auth.models import SessionClaims
from portfolio.store import PortfolioStore

logger = logging.getLogger("portfolio.api")

router = APIRouter()


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(request: Request) -> AvailabilityResponse:
    store: PortfolioStore = request.app.state.portfolio
    return AvailabilityResponse(status=store.get_availability())


@router.put("/availability", response_model=AvailabilityUpdatedResponse)
def set_availability(
    request: Request,
    body: AvailabilityUpdate,
    claims: SessionClaims = Depends(require_admin),
) -> AvailabilityUpdatedResponse:
    store: PortfolioStore = request.app.state.portfolio
    record = store.set_availability(body.status.value)
    logger.info("Availability set to %s by %s", record.status, claims.username)
    return AvailabilityUpdatedResponse(status=record.status)
