"""Roster router - FastAPI endpoints for the kiosk and the roster panel"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ...state import get_session
from ..assignment.session import ShopSession
from .schemas import ClockInRequest, ClockOutRequest, ServiceResponse, TherapistResponse
from .service import RosterService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Roster"])


def get_roster_service(session: ShopSession = Depends(get_session)) -> RosterService:
    """Dependency injection for RosterService"""
    return RosterService(session)


@router.get("/therapists", response_model=list[TherapistResponse])
async def get_therapists(service: RosterService = Depends(get_roster_service)):
    """All therapists in roster order with clock-in and busy state"""
    return service.get_therapists()


@router.post("/therapists/{name}/clock-in", response_model=TherapistResponse)
async def clock_in(
    name: str,
    data: Optional[ClockInRequest] = Body(None),
    service: RosterService = Depends(get_roster_service),
):
    return service.clock_in(name, data.time if data else None)


@router.post("/therapists/{name}/clock-out", response_model=TherapistResponse)
async def clock_out(
    name: str,
    data: Optional[ClockOutRequest] = Body(None),
    service: RosterService = Depends(get_roster_service),
):
    return service.clock_out(name, data.comment if data else None)


@router.get("/services", response_model=list[ServiceResponse])
async def get_services(service: RosterService = Depends(get_roster_service)):
    return [ServiceResponse.model_validate(s) for s in service.get_services()]
