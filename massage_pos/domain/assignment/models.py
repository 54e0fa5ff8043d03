"""Assignment domain objects - the service entry log and operator-facing results"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Addon:
    name: str
    price: int


@dataclass
class PaymentDetail:
    method: str
    amount: int
    verified: bool = True
    timestamp: str = ""
    reference: Optional[str] = None
    collected_by: Optional[str] = None


@dataclass
class PaymentInfo:
    """Payment choices captured when an entry is created"""

    payment_type: str = "Cash"
    notes: str = ""
    addons: list[Addon] = field(default_factory=list)

    @property
    def addons_total(self) -> int:
        return sum(a.price for a in self.addons)


@dataclass
class ServiceEntry:
    id: str
    therapist: str
    service_id: str
    service_name: str
    service: str  # "<name> <base price>" label
    price: int
    time: str  # HH:MM start
    column: int
    round: Optional[int]  # None only while a scheduled booking waits for activation
    end_time: Optional[str] = None
    extended_minutes: int = 0
    original_price: Optional[int] = None
    group_number: Optional[int] = None
    payment_type: str = "Cash"
    payment_status: str = "unpaid"
    payment_details: list[PaymentDetail] = field(default_factory=list)
    notes: str = ""
    addons: list[Addon] = field(default_factory=list)
    scheduled_time: Optional[datetime] = None
    is_scheduled: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        """Occupies the therapist right now"""
        return self.end_time is None and not self.is_scheduled

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    @property
    def amount_paid(self) -> int:
        return sum(p.amount for p in self.payment_details)


@dataclass
class AssignmentWarning:
    code: str
    message: str
    therapist: Optional[str] = None
    entry_id: Optional[str] = None


@dataclass
class AssignmentResult:
    entries: list[ServiceEntry] = field(default_factory=list)
    warnings: list[AssignmentWarning] = field(default_factory=list)

    @property
    def entry(self) -> ServiceEntry:
        return self.entries[0]


@dataclass
class BoardSnapshot:
    """What the display board and any other observer receives after a mutation"""

    entries: list[ServiceEntry]
    queue: list[str]
    next_index: int
    current_round: int
    round_counts: dict[str, int]
    clocked_in: list[str]
    generated_at: datetime
