"""
Shop session - the single aggregate owning the day's entries, queue and rounds.

All operator commands go through this object. Each command runs under one lock from
read to write, then the resulting board snapshot is handed to the broadcaster. The
HTTP handlers and the activation worker share the same instance.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from threading import RLock
from typing import Callable, Iterator, Optional

from ...config import ACTIVATION_CATCH_UP, CHAIN_ROUND_LIMIT_MINUTES, SCHEDULED_LEAD_MINUTES
from ..roster.repository import RosterRepository, ServiceCatalog
from .availability import AvailabilityResolver
from .engine import AssignmentEngine
from .fairness_queue import FairnessQueue
from .models import AssignmentResult, BoardSnapshot, PaymentInfo, ServiceEntry
from .rounds import RoundTracker
from .schemas import (
    AutoEntryCreate,
    ChainedEntryCreate,
    GroupEntryCreate,
    ManualEntryCreate,
    ScheduledEntryCreate,
)
from .time_calculator import TimeCalculator

logger = logging.getLogger(__name__)

SnapshotPublisher = Callable[[BoardSnapshot], None]


class ShopSession:
    def __init__(
        self,
        roster: RosterRepository,
        catalog: ServiceCatalog,
        clock: Optional[Callable[[], datetime]] = None,
        publisher: Optional[SnapshotPublisher] = None,
        lead_minutes: int = SCHEDULED_LEAD_MINUTES,
        chain_limit_minutes: int = CHAIN_ROUND_LIMIT_MINUTES,
        catch_up: bool = ACTIVATION_CATCH_UP,
    ):
        self.roster = roster
        self.catalog = catalog
        self.clock = clock or datetime.now
        self.publisher = publisher
        self.catch_up = catch_up

        self.entries: list[ServiceEntry] = []
        self.queue = FairnessQueue()
        self.rounds = RoundTracker()
        self.times = TimeCalculator(catalog.durations())
        self.availability = AvailabilityResolver(roster, self.entries, self.times, self.clock)
        self.engine = AssignmentEngine(
            roster=roster,
            catalog=catalog,
            entries=self.entries,
            queue=self.queue,
            rounds=self.rounds,
            times=self.times,
            availability=self.availability,
            clock=self.clock,
            lead_minutes=lead_minutes,
            chain_limit_minutes=chain_limit_minutes,
        )

        self._lock = RLock()
        self.queue.resync(self.availability.eligible_therapists())
        roster.add_listener(self.on_roster_changed)

    @contextmanager
    def command(self) -> Iterator[AssignmentEngine]:
        """Run one operator action atomically and publish the board afterwards"""
        with self._lock:
            yield self.engine
            self.publish()

    def publish(self) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher(self.snapshot())
        except Exception as e:
            logger.error(f"❌ Board publish failed: {e}")

    def on_roster_changed(self) -> None:
        """Clock-in/out notification from the roster"""
        with self.command():
            self.queue.resync(self.availability.eligible_therapists())
            logger.info(f"🔄 Queue after roster change: {self.queue.names}")

    # ------------------------------------------------------------------
    # Operator commands
    # ------------------------------------------------------------------

    def create_auto_entry(self, service_id: str, payment: Optional[PaymentInfo] = None) -> AssignmentResult:
        with self.command() as engine:
            return engine.create_auto_entry(service_id, payment or PaymentInfo())

    def create_manual_entry(
        self,
        service_id: str,
        therapist: Optional[str] = None,
        time: Optional[str] = None,
        payment: Optional[PaymentInfo] = None,
    ) -> AssignmentResult:
        with self.command() as engine:
            return engine.create_manual_entry(service_id, therapist, time, payment or PaymentInfo())

    def create_group_entries(
        self,
        members: list[tuple[str, Optional[str]]],
        payment: Optional[PaymentInfo] = None,
    ) -> AssignmentResult:
        with self.command() as engine:
            return engine.create_group_entries(members, payment or PaymentInfo())

    def create_scheduled_entry(
        self,
        service_id: str,
        therapist: Optional[str],
        scheduled_time: datetime,
        payment: Optional[PaymentInfo] = None,
    ) -> AssignmentResult:
        with self.command() as engine:
            return engine.create_scheduled_entry(
                service_id, therapist, scheduled_time, payment or PaymentInfo()
            )

    def add_chained_service(
        self, entry_id: str, service_id: str, payment: Optional[PaymentInfo] = None
    ) -> AssignmentResult:
        with self.command() as engine:
            return engine.add_chained_service(entry_id, service_id, payment or PaymentInfo())

    def end_service(self, entry_id: str) -> ServiceEntry:
        with self.command() as engine:
            return engine.end_service(entry_id)

    def extend_service(self, entry_id: str, minutes: int) -> ServiceEntry:
        with self.command() as engine:
            return engine.extend_service(entry_id, minutes)

    def tick_scheduled_activation(self, now: Optional[datetime] = None) -> list[ServiceEntry]:
        with self._lock:
            activated = self.engine.tick_scheduled_activation(now or self.clock(), self.catch_up)
            if activated:
                self.publish()
            return activated

    def submit(self, request) -> AssignmentResult:
        """Dispatch one of the entry request variants to its command"""
        payment = request.payment.to_payment_info()
        if isinstance(request, AutoEntryCreate):
            return self.create_auto_entry(request.serviceId, payment)
        if isinstance(request, ManualEntryCreate):
            return self.create_manual_entry(
                request.serviceId, request.therapist, request.time, payment
            )
        if isinstance(request, GroupEntryCreate):
            members = [(m.serviceId, m.therapist) for m in request.members]
            return self.create_group_entries(members, payment)
        if isinstance(request, ScheduledEntryCreate):
            return self.create_scheduled_entry(
                request.serviceId, request.therapist, request.scheduledTime, payment
            )
        if isinstance(request, ChainedEntryCreate):
            return self.add_chained_service(request.entryId, request.serviceId, payment)
        raise TypeError(f"Unsupported entry request: {type(request).__name__}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def preview_next_therapist(self, service_id: str) -> Optional[str]:
        with self._lock:
            self.engine.require_service(service_id)
            return self.engine.get_next_therapist_for_service(service_id)

    def get_entry(self, entry_id: str) -> ServiceEntry:
        with self._lock:
            return self.engine.require_entry(entry_id)

    def list_entries(self) -> list[ServiceEntry]:
        with self._lock:
            return list(self.entries)

    def snapshot(self) -> BoardSnapshot:
        with self._lock:
            return BoardSnapshot(
                entries=list(self.entries),
                queue=list(self.queue.names),
                next_index=self.queue.next_index,
                current_round=self.rounds.current_round,
                round_counts=dict(self.rounds.counts),
                clocked_in=self.roster.list_clocked_in(),
                generated_at=self.clock(),
            )
