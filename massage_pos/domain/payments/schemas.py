"""Payment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ...shared.validators import validate_clock_time
from ..assignment.schemas import PaymentDetailResponse

PAYMENT_METHODS = {"Cash", "Card", "QR Code", "Bank Transfer"}


class PaymentLineIn(BaseModel):
    """One tender line on the payment modal"""

    method: str = "Cash"
    amount: int
    reference: Optional[str] = None
    verified: bool = False
    timestamp: Optional[str] = None
    collectedBy: Optional[str] = None

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        if v not in PAYMENT_METHODS:
            raise ValueError(f"Payment method must be one of: {', '.join(sorted(PAYMENT_METHODS))}")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v):
        return validate_clock_time(v)


class EntryPaymentCollect(BaseModel):
    """Replaces the payment lines recorded on one entry"""

    payments: list[PaymentLineIn]


class GroupEntryPayments(BaseModel):
    entryId: str
    payments: list[PaymentLineIn]


class GroupPaymentCollect(BaseModel):
    entries: list[GroupEntryPayments]

    @field_validator("entries")
    @classmethod
    def validate_entries(cls, v):
        if not v:
            raise ValueError("At least one entry payment is required")
        return v


class EntryPaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    entry_id: str
    therapist: str
    service: str
    price: int
    paid: int
    remaining: int
    payment_status: str
    payment_details: list[PaymentDetailResponse]


class GroupPaymentSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    group_number: int
    total: int
    paid: int
    remaining: int
    payment_status: str
    all_completed: bool
    entries: list[EntryPaymentResponse]
