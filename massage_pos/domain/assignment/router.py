"""Assignment router - FastAPI endpoints for the manager's entry forms and the board"""

import logging

from fastapi import APIRouter, Body, Depends, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ...services.scheduled_activation import activate_scheduled_entries
from ...state import get_session
from .schemas import (
    ActivationResultResponse,
    AssignmentResultResponse,
    AutoEntryCreate,
    BoardResponse,
    ChainedServiceCreate,
    ExtendRequest,
    GroupEntryCreate,
    ManualEntryCreate,
    NextTherapistResponse,
    ScheduledEntryCreate,
    ServiceEntryResponse,
    entry_request_adapter,
)
from .session import ShopSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/entries", tags=["Entries"])
board_router = APIRouter(tags=["Board"])


# ============================================================================
# READS
# ============================================================================


@router.get("", response_model=list[ServiceEntryResponse])
async def get_entries(session: ShopSession = Depends(get_session)):
    """Every entry of the session in creation order"""
    return [ServiceEntryResponse.model_validate(e) for e in session.list_entries()]


@router.get("/next-therapist", response_model=NextTherapistResponse)
async def get_next_therapist(
    service_id: str = Query(..., alias="serviceId"),
    session: ShopSession = Depends(get_session),
):
    """Who the rotation would pick right now; the form disables submit on null"""
    therapist = session.preview_next_therapist(service_id)
    return NextTherapistResponse(
        service_id=service_id, therapist=therapist, can_assign=therapist is not None
    )


# ============================================================================
# ENTRY CREATION
# ============================================================================


@router.post("", response_model=AssignmentResultResponse, status_code=201)
async def create_entry(payload: dict = Body(...), session: ShopSession = Depends(get_session)):
    """Create entries from any request variant, selected by its "mode" field"""
    try:
        request = entry_request_adapter.validate_python(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))

    logger.info(f"📥 Entry request ({request.mode}) received")
    return AssignmentResultResponse.model_validate(session.submit(request))


@router.post("/auto", response_model=AssignmentResultResponse, status_code=201)
async def create_auto_entry(data: AutoEntryCreate, session: ShopSession = Depends(get_session)):
    return AssignmentResultResponse.model_validate(session.submit(data))


@router.post("/manual", response_model=AssignmentResultResponse, status_code=201)
async def create_manual_entry(
    data: ManualEntryCreate, session: ShopSession = Depends(get_session)
):
    return AssignmentResultResponse.model_validate(session.submit(data))


@router.post("/group", response_model=AssignmentResultResponse, status_code=201)
async def create_group_entries(
    data: GroupEntryCreate, session: ShopSession = Depends(get_session)
):
    return AssignmentResultResponse.model_validate(session.submit(data))


@router.post("/scheduled", response_model=AssignmentResultResponse, status_code=201)
async def create_scheduled_entry(
    data: ScheduledEntryCreate, session: ShopSession = Depends(get_session)
):
    return AssignmentResultResponse.model_validate(session.submit(data))


# ============================================================================
# ENTRY MUTATIONS
# ============================================================================


@router.post("/{entry_id}/end", response_model=ServiceEntryResponse)
async def end_service(entry_id: str, session: ShopSession = Depends(get_session)):
    return ServiceEntryResponse.model_validate(session.end_service(entry_id))


@router.post("/{entry_id}/extend", response_model=ServiceEntryResponse)
async def extend_service(
    entry_id: str, data: ExtendRequest, session: ShopSession = Depends(get_session)
):
    return ServiceEntryResponse.model_validate(session.extend_service(entry_id, data.minutes))


@router.post("/{entry_id}/chain", response_model=AssignmentResultResponse, status_code=201)
async def add_chained_service(
    entry_id: str, data: ChainedServiceCreate, session: ShopSession = Depends(get_session)
):
    """Additional service for the same therapist, starting when this entry ends"""
    result = session.add_chained_service(
        entry_id, data.serviceId, data.payment.to_payment_info()
    )
    return AssignmentResultResponse.model_validate(result)


# ============================================================================
# ACTIVATION
# ============================================================================


@router.post("/activation/run", response_model=ActivationResultResponse)
async def run_activation(session: ShopSession = Depends(get_session)):
    """
    Manually trigger scheduled booking activation
    Same pass the background worker runs every minute
    """
    activated = activate_scheduled_entries(session)
    return ActivationResultResponse(
        activated=len(activated),
        entries=[ServiceEntryResponse.model_validate(e) for e in activated],
    )


# ============================================================================
# BOARD
# ============================================================================


@board_router.get("/board", response_model=BoardResponse)
async def get_board(session: ShopSession = Depends(get_session)):
    """Live display board: entries, queue order, round state"""
    return BoardResponse.model_validate(session.snapshot())
