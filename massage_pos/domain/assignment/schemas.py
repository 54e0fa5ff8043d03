"""Assignment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from ...shared.validators import validate_clock_time, validate_name, validate_positive_minutes
from .models import Addon, PaymentInfo

# ============================================================================
# REQUESTS
# ============================================================================


class AddonIn(BaseModel):
    name: str
    price: int

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v < 0:
            raise ValueError("Add-on price must not be negative")
        return v


class PaymentIn(BaseModel):
    """Payment choices captured on the entry form"""

    paymentType: str = "Cash"
    notes: Optional[str] = None
    addons: list[AddonIn] = Field(default_factory=list)

    def to_payment_info(self) -> PaymentInfo:
        return PaymentInfo(
            payment_type=self.paymentType,
            notes=(self.notes or "").strip(),
            addons=[Addon(name=a.name, price=a.price) for a in self.addons],
        )


class AutoEntryCreate(BaseModel):
    """Walk-in customer, therapist picked by the rotation"""

    mode: Literal["auto"] = "auto"
    serviceId: str
    payment: PaymentIn = Field(default_factory=PaymentIn)


class ManualEntryCreate(BaseModel):
    """Operator picks the therapist and/or the start time"""

    mode: Literal["manual"] = "manual"
    serviceId: str
    therapist: Optional[str] = None
    time: Optional[str] = None
    payment: PaymentIn = Field(default_factory=PaymentIn)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_clock_time(v)

    @field_validator("therapist")
    @classmethod
    def validate_therapist(cls, v):
        return validate_name(v)


class GroupMemberIn(BaseModel):
    serviceId: str
    therapist: Optional[str] = None

    @field_validator("therapist")
    @classmethod
    def validate_therapist(cls, v):
        return validate_name(v)


class GroupEntryCreate(BaseModel):
    """Several customers served at the same time"""

    mode: Literal["group"] = "group"
    members: list[GroupMemberIn]
    payment: PaymentIn = Field(default_factory=PaymentIn)

    @field_validator("members")
    @classmethod
    def validate_members(cls, v):
        if not v:
            raise ValueError("A group booking needs at least one service")
        return v


class ScheduledEntryCreate(BaseModel):
    """Future-dated booking, inert until activated"""

    mode: Literal["scheduled"] = "scheduled"
    serviceId: str
    therapist: Optional[str] = None
    scheduledTime: datetime
    payment: PaymentIn = Field(default_factory=PaymentIn)

    @field_validator("therapist")
    @classmethod
    def validate_therapist(cls, v):
        return validate_name(v)


class ChainedEntryCreate(BaseModel):
    """Additional service for the therapist of an existing entry"""

    mode: Literal["chained"] = "chained"
    entryId: str
    serviceId: str
    payment: PaymentIn = Field(default_factory=PaymentIn)


EntryRequest = Annotated[
    Union[
        AutoEntryCreate,
        ManualEntryCreate,
        GroupEntryCreate,
        ScheduledEntryCreate,
        ChainedEntryCreate,
    ],
    Field(discriminator="mode"),
]

entry_request_adapter = TypeAdapter(EntryRequest)


class ChainedServiceCreate(BaseModel):
    """Body of POST /entries/{id}/chain"""

    serviceId: str
    payment: PaymentIn = Field(default_factory=PaymentIn)


class ExtendRequest(BaseModel):
    minutes: int

    @field_validator("minutes")
    @classmethod
    def validate_minutes(cls, v):
        return validate_positive_minutes(v)


# ============================================================================
# RESPONSES
# ============================================================================


class _Response(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class AddonResponse(_Response):
    name: str
    price: int


class PaymentDetailResponse(_Response):
    method: str
    amount: int
    verified: bool
    timestamp: str
    reference: Optional[str] = None
    collected_by: Optional[str] = None


class ServiceEntryResponse(_Response):
    id: str
    therapist: str
    service_id: str
    service_name: str
    service: str
    price: int
    time: str
    end_time: Optional[str] = None
    extended_minutes: int = 0
    original_price: Optional[int] = None
    column: int
    round: Optional[int] = None
    group_number: Optional[int] = None
    payment_type: str
    payment_status: str
    payment_details: list[PaymentDetailResponse] = Field(default_factory=list)
    notes: str = ""
    addons: list[AddonResponse] = Field(default_factory=list)
    scheduled_time: Optional[datetime] = None
    is_scheduled: bool = False


class AssignmentWarningResponse(_Response):
    code: str
    message: str
    therapist: Optional[str] = None
    entry_id: Optional[str] = None


class AssignmentResultResponse(_Response):
    entries: list[ServiceEntryResponse]
    warnings: list[AssignmentWarningResponse] = Field(default_factory=list)


class NextTherapistResponse(_Response):
    service_id: str
    therapist: Optional[str] = None
    can_assign: bool


class ActivationResultResponse(_Response):
    activated: int
    entries: list[ServiceEntryResponse]


class BoardResponse(_Response):
    """Display board payload, published verbatim to board observers"""

    entries: list[ServiceEntryResponse]
    queue: list[str]
    next_index: int
    current_round: int
    round_counts: dict[str, int]
    clocked_in: list[str]
    generated_at: datetime
