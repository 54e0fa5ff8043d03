"""Payment router - FastAPI endpoints for the payment collection modal"""

import logging

from fastapi import APIRouter, Depends

from ...state import get_session
from ..assignment.session import ShopSession
from .schemas import EntryPaymentCollect, EntryPaymentResponse, GroupPaymentCollect, GroupPaymentSummary
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(session: ShopSession = Depends(get_session)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(session)


@router.post("/entries/{entry_id}", response_model=EntryPaymentResponse)
async def collect_entry_payment(
    entry_id: str,
    data: EntryPaymentCollect,
    service: PaymentService = Depends(get_payment_service),
):
    return service.collect_entry_payment(entry_id, data.payments)


@router.post("/groups/{group_number}", response_model=GroupPaymentSummary)
async def collect_group_payment(
    group_number: int,
    data: GroupPaymentCollect,
    service: PaymentService = Depends(get_payment_service),
):
    """Collect payment for a whole group once every service has ended"""
    payments = {item.entryId: item.payments for item in data.entries}
    return service.collect_group_payment(group_number, payments)


@router.get("/groups/{group_number}", response_model=GroupPaymentSummary)
async def get_group_summary(
    group_number: int,
    service: PaymentService = Depends(get_payment_service),
):
    return service.get_group_summary(group_number)
