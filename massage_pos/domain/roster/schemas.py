"""Roster domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ...shared.validators import validate_clock_time, validate_name


class ClockInRequest(BaseModel):
    """Kiosk clock-in; time defaults to the shop clock"""

    time: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_clock_time(v)


class ClockOutRequest(BaseModel):
    comment: Optional[str] = None

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        if v is not None:
            v = v.strip()
            if len(v) > 500:
                raise ValueError("Comment must be 500 characters or fewer")
        return v or None


class TherapistResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    name: str
    certified_services: list[str]
    commission_rate: float
    clocked_in: bool
    clocked_in_at: Optional[str] = None
    clock_out_comment: Optional[str] = None
    is_busy: bool = False


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    price: int
    duration: int
    label: str


# ============================================================================
# ROSTER FILE
# ============================================================================


class TherapistRow(BaseModel):
    """One therapist record of the roster file"""

    name: str
    certifiedServices: list[str] = Field(default_factory=list)
    commissionRate: float = Field(50, ge=0, le=100)
    clockedIn: bool = False

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_name(v)

    @field_validator("certifiedServices", mode="before")
    @classmethod
    def coerce_service_ids(cls, v):
        if isinstance(v, list):
            return [str(s) for s in v]
        return v


class ServiceRow(BaseModel):
    id: str
    name: str
    price: int = Field(..., ge=0)
    duration: int = Field(60, gt=0)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if isinstance(v, int) else v

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_name(v)


class RosterFile(BaseModel):
    """Top-level layout of ROSTER_FILE; missing sections fall back to the built-in data"""

    therapists: Optional[list[TherapistRow]] = None
    services: Optional[list[ServiceRow]] = None
