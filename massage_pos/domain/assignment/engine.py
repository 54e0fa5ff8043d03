"""
Assignment engine - decides which therapist gets each new service entry.

Every public method is one complete command over the shop's in-memory state: it
validates, resolves the therapist, appends the entry and applies the queue/round
bookkeeping before returning. Callers serialize commands (see ShopSession).
"""

import logging
import math
import re
import uuid
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from ...config import CHAIN_ROUND_LIMIT_MINUTES, SCHEDULED_LEAD_MINUTES
from ..roster.models import ServiceCatalogEntry, Therapist
from ..roster.repository import RosterRepository, ServiceCatalog
from .availability import AvailabilityResolver
from .errors import (
    CertificationMismatch,
    EntryNotFound,
    EntryStateError,
    InvalidGroupComposition,
    InvalidSchedule,
    LeadTimeViolation,
    NoEligibleTherapist,
    SchedulingConflict,
    UnknownService,
    UnknownTherapist,
)
from .fairness_queue import FairnessQueue
from .models import AssignmentResult, PaymentInfo, ServiceEntry
from .rounds import RoundTracker
from .time_calculator import TimeCalculator, clock_of, format_clock, parse_clock

logger = logging.getLogger(__name__)

SCHEDULED_MARKER = re.compile(r"^Scheduled for \d{4}-\d{2}-\d{2} \d{2}:\d{2}(\s*\|\s*)?")

# Active services already past their computed end are assumed to finish this much later
OVERRUN_ALLOWANCE = timedelta(minutes=30)

ACTIVATION_WINDOW_SECONDS = 60


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def strip_scheduled_marker(notes: str) -> str:
    return SCHEDULED_MARKER.sub("", notes or "").strip()


def to_local_naive(moment: datetime) -> datetime:
    """Scheduled times are compared against the shop's local wall clock"""
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


class AssignmentEngine:
    def __init__(
        self,
        roster: RosterRepository,
        catalog: ServiceCatalog,
        entries: list[ServiceEntry],
        queue: FairnessQueue,
        rounds: RoundTracker,
        times: TimeCalculator,
        availability: AvailabilityResolver,
        clock: Callable[[], datetime],
        lead_minutes: int = SCHEDULED_LEAD_MINUTES,
        chain_limit_minutes: int = CHAIN_ROUND_LIMIT_MINUTES,
    ):
        self.roster = roster
        self.catalog = catalog
        self.entries = entries
        self.queue = queue
        self.rounds = rounds
        self.times = times
        self.availability = availability
        self.clock = clock
        self.lead_minutes = lead_minutes
        self.chain_limit_minutes = chain_limit_minutes

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def require_service(self, service_id: str) -> ServiceCatalogEntry:
        service = self.catalog.get(service_id)
        if service is None:
            raise UnknownService(f"Service {service_id} not found")
        return service

    def require_therapist(self, name: str) -> Therapist:
        therapist = self.roster.get_therapist(name)
        if therapist is None:
            raise UnknownTherapist(f"Therapist {name} not found", therapist=name)
        return therapist

    def require_entry(self, entry_id: str) -> ServiceEntry:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFound(f"Service entry {entry_id} not found")

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def get_next_therapist_for_service(
        self, service_id: str, exclude: Iterable[str] = ()
    ) -> Optional[str]:
        """
        Next therapist in rotation who can take this service now.

        Candidates are queue members certified for the service, not busy and not
        excluded. The cursor therapist wins if they have not been served this round,
        then the first unserved candidate in queue order, then the first candidate.
        Pure: never mutates the queue.
        """
        excluded = set(exclude)
        busy = self.availability.busy_therapists()
        candidates = [
            name
            for name in self.queue.names
            if name not in busy
            and name not in excluded
            and self.availability.is_certified(name, service_id)
        ]
        if not candidates:
            return None

        next_in_line = self.queue.current()
        if next_in_line in candidates and self.rounds.count(next_in_line) == 0:
            return next_in_line

        for name in candidates:
            if self.rounds.count(name) == 0:
                return name

        return candidates[0]

    def _last_resort_therapist(self, service_id: str) -> Optional[str]:
        """Any certified therapist, ignoring busy status and group exclusivity"""
        for name in self.queue.names:
            if self.availability.is_certified(name, service_id):
                return name
        certified = self.availability.certified_for(service_id)
        return certified[0] if certified else None

    # ------------------------------------------------------------------
    # Entry construction and bookkeeping
    # ------------------------------------------------------------------

    def _next_column(self, therapist: str) -> int:
        columns = [e.column for e in self.entries if e.therapist == therapist]
        return max(columns) + 1 if columns else 1

    def _next_group_number(self) -> int:
        groups = [e.group_number for e in self.entries if e.group_number is not None]
        return max(groups) + 1 if groups else 1

    def _new_entry(
        self,
        therapist: str,
        service: ServiceCatalogEntry,
        payment: PaymentInfo,
        start: str,
        round_number: Optional[int],
        group_number: Optional[int] = None,
        notes: Optional[str] = None,
        scheduled_time: Optional[datetime] = None,
    ) -> ServiceEntry:
        entry = ServiceEntry(
            id=uuid.uuid4().hex,
            therapist=therapist,
            service_id=service.id,
            service_name=service.name,
            service=service.label,
            price=service.price + payment.addons_total,
            time=start,
            column=self._next_column(therapist),
            round=round_number,
            group_number=group_number,
            payment_type=payment.payment_type,
            notes=payment.notes if notes is None else notes,
            addons=list(payment.addons),
            scheduled_time=scheduled_time,
            is_scheduled=scheduled_time is not None,
            created_at=self.clock(),
        )
        self.entries.append(entry)
        return entry

    def _place_auto(
        self,
        therapist: str,
        service: ServiceCatalogEntry,
        payment: PaymentInfo,
        group_number: Optional[int] = None,
    ) -> ServiceEntry:
        """Create an auto-assigned entry and rotate the queue/round state"""
        if therapist in self.queue and therapist != self.queue.current():
            self.queue.promote_to_front(therapist)

        start = self.times.next_available_time(self.entries, therapist, self.clock())
        entry = self._new_entry(
            therapist, service, payment, start, self.rounds.current_round, group_number
        )

        eligible = self.availability.eligible_therapists()
        if self.rounds.record_assignment(therapist, eligible):
            self.rounds.close_round()
            self.queue.reset_to_roster(eligible)
        else:
            self.queue.advance_after_assignment(therapist)

        logger.info(
            f"✅ {service.name} assigned to {therapist} at {start} "
            f"(round {entry.round}, next={self.queue.current()})"
        )
        return entry

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_auto_entry(self, service_id: str, payment: PaymentInfo) -> AssignmentResult:
        service = self.require_service(service_id)
        therapist = self.get_next_therapist_for_service(service.id)
        if therapist is None:
            raise NoEligibleTherapist(
                f"No clocked-in therapist is free and certified for {service.name}"
            )
        return AssignmentResult(entries=[self._place_auto(therapist, service, payment)])

    def create_manual_entry(
        self,
        service_id: str,
        therapist: Optional[str],
        start_time: Optional[str],
        payment: PaymentInfo,
    ) -> AssignmentResult:
        service = self.require_service(service_id)
        warnings = []

        if therapist is None:
            name = self.get_next_therapist_for_service(service.id)
            if name is None:
                raise NoEligibleTherapist(
                    f"No clocked-in therapist is free and certified for {service.name}"
                )
        else:
            self.require_therapist(therapist)
            name = therapist
            if not self.availability.is_certified(therapist, service.id):
                substitute = self.get_next_therapist_for_service(service.id)
                if substitute is None:
                    raise NoEligibleTherapist(
                        f"{therapist} is not certified for {service.name} and no certified "
                        f"therapist is free",
                        therapist=therapist,
                    )
                warnings.append(
                    CertificationMismatch(
                        f"{therapist} is not certified for {service.name}; "
                        f"assigned {substitute} instead",
                        therapist=therapist,
                    )
                )
                name = substitute

        now = self.clock()
        start = start_time or self.times.next_available_time(self.entries, name, now)
        conflict = self.availability.find_conflict(name, start, service.name)
        if conflict is not None:
            corrected = self.availability.earliest_free_start(name, start, service.name)
            warnings.append(
                SchedulingConflict(
                    f"{name} is booked at {start}; start time moved to {corrected}",
                    therapist=name,
                )
            )
            start = corrected

        round_number = self.rounds.round_for_manual(self.entries, name)
        entry = self._new_entry(name, service, payment, start, round_number)

        for warning in warnings:
            logger.warning(f"⚠️ Manual entry {entry.id}: {warning.message}")
        logger.info(f"✅ Manual {service.name} for {name} at {start} (round {round_number})")

        return AssignmentResult(
            entries=[entry], warnings=[w.as_warning(entry.id) for w in warnings]
        )

    def create_group_entries(
        self, members: list[tuple[str, Optional[str]]], payment: PaymentInfo
    ) -> AssignmentResult:
        """
        Assign every member of a group booking.

        ``members`` is a list of (service_id, preferred_therapist) pairs processed in
        order. Each member sees the state left by the previous ones, and therapists
        already used in this group are skipped. When nobody is left, the member goes
        to any certified therapist and the result carries an
        ``invalid_group_composition`` warning.
        """
        if not members:
            raise InvalidGroupComposition("A group booking needs at least one service")

        services = [self.require_service(service_id) for service_id, _ in members]
        for _, preferred in members:
            if preferred is not None:
                self.require_therapist(preferred)
        for service in services:
            if not self.availability.certified_for(service.id):
                raise NoEligibleTherapist(f"No therapist is certified for {service.name}")

        group_number = self._next_group_number()
        assigned_in_group: set[str] = set()
        result = AssignmentResult()

        for (_, preferred), service in zip(members, services):
            fallback = False
            therapist = None
            if (
                preferred is not None
                and preferred not in assigned_in_group
                and self.availability.is_certified(preferred, service.id)
                and not self.availability.is_busy(preferred)
            ):
                therapist = preferred
            if therapist is None:
                therapist = self.get_next_therapist_for_service(
                    service.id, exclude=assigned_in_group
                )
            if therapist is None:
                therapist = self._last_resort_therapist(service.id)
                fallback = True

            entry = self._place_auto(therapist, service, payment, group_number)
            assigned_in_group.add(therapist)
            result.entries.append(entry)

            if fallback:
                warning = InvalidGroupComposition(
                    f"No free therapist left for {service.name} in group {group_number}; "
                    f"{therapist} assigned anyway",
                    therapist=therapist,
                )
                logger.warning(f"⚠️ Group {group_number}: {warning.message}")
                result.warnings.append(warning.as_warning(entry.id))

        logger.info(
            f"👥 Group {group_number} created: "
            f"{', '.join(f'{e.service_name}->{e.therapist}' for e in result.entries)}"
        )
        return result

    def create_scheduled_entry(
        self,
        service_id: str,
        therapist: Optional[str],
        scheduled_time: datetime,
        payment: PaymentInfo,
    ) -> AssignmentResult:
        service = self.require_service(service_id)
        scheduled_time = to_local_naive(scheduled_time)
        now = self.clock()

        if scheduled_time <= now:
            raise InvalidSchedule("Scheduled time must be in the future")

        if therapist is None:
            name = self.get_next_therapist_for_service(service.id)
            if name is None:
                raise NoEligibleTherapist(
                    f"No clocked-in therapist is free and certified for {service.name}"
                )
        else:
            self.require_therapist(therapist)
            name = therapist

        if not self.availability.is_certified(name, service.id):
            raise CertificationMismatch(
                f"Therapist {name} is not certified for {service.name} service. "
                f"Please select a different therapist.",
                therapist=name,
            )

        self._check_lead_time(name, service, scheduled_time, now)

        marker = f"Scheduled for {scheduled_time:%Y-%m-%d %H:%M}"
        notes = f"{marker} | {payment.notes}" if payment.notes else marker
        entry = self._new_entry(
            name,
            service,
            payment,
            clock_of(scheduled_time),
            None,
            notes=notes,
            scheduled_time=scheduled_time,
        )
        logger.info(f"📅 {service.name} booked for {name} at {scheduled_time:%Y-%m-%d %H:%M}")
        return AssignmentResult(entries=[entry])

    def _entry_window(self, entry: ServiceEntry, now: datetime) -> tuple[datetime, datetime]:
        """Calendar window of a non-completed entry"""
        duration = timedelta(minutes=self.times.entry_duration(entry))
        if entry.is_scheduled and entry.scheduled_time is not None:
            return entry.scheduled_time, entry.scheduled_time + duration

        start_minutes = parse_clock(entry.time)
        start = now.replace(
            hour=start_minutes // 60, minute=start_minutes % 60, second=0, microsecond=0
        )
        end = start + duration
        if start <= now and end < now:
            end = now + OVERRUN_ALLOWANCE
        return start, end

    def _check_lead_time(
        self,
        therapist: str,
        service: ServiceCatalogEntry,
        new_start: datetime,
        now: datetime,
    ) -> None:
        """A booking must start a full lead period before the therapist's other work"""
        lead = timedelta(minutes=self.lead_minutes)
        new_end = new_start + timedelta(minutes=self.times.duration(service.name))

        for entry in self.entries:
            if entry.therapist != therapist or entry.is_completed:
                continue
            start, end = self._entry_window(entry, now)
            if start - lead <= new_start < end:
                raise LeadTimeViolation(
                    f"Therapist {therapist} has a service at {start:%d %b %H:%M}. Please "
                    f"schedule at least {self.lead_minutes} minutes before this time.",
                    therapist=therapist,
                )
            if start - lead < new_end <= start:
                raise LeadTimeViolation(
                    f"This service would end too close to {therapist}'s service at "
                    f"{start:%d %b %H:%M}. Please schedule earlier to allow at least "
                    f"{self.lead_minutes} minutes before it.",
                    therapist=therapist,
                )

    def add_chained_service(
        self, entry_id: str, service_id: str, payment: PaymentInfo
    ) -> AssignmentResult:
        """Append another service for the same therapist, starting when the entry ends"""
        existing = self.require_entry(entry_id)
        service = self.require_service(service_id)
        therapist = existing.therapist

        if existing.is_scheduled:
            raise EntryStateError(
                f"Service entry {entry_id} is a scheduled booking that has not started yet"
            )
        if not self.availability.is_certified(therapist, service.id):
            raise CertificationMismatch(
                f"Therapist {therapist} is not certified for {service.name}",
                therapist=therapist,
            )

        warnings = []
        start = format_clock(self.times.entry_interval(existing)[1])
        if not self.availability.is_available_at(
            therapist, start, service.name, exclude_entry_id=existing.id
        ):
            corrected = self.availability.earliest_free_start(
                therapist, start, service.name, exclude_entry_id=existing.id
            )
            warnings.append(
                SchedulingConflict(
                    f"{therapist} is booked at {start}; start time moved to {corrected}",
                    therapist=therapist,
                )
            )
            start = corrected

        combined = self.times.entry_duration(existing) + self.times.duration(service.name)
        if combined > self.chain_limit_minutes:
            round_number = self.rounds.round_for_manual(self.entries, therapist)
            group_number = None
        else:
            round_number = existing.round
            group_number = existing.group_number

        entry = self._new_entry(therapist, service, payment, start, round_number, group_number)

        for warning in warnings:
            logger.warning(f"⚠️ Chained entry {entry.id}: {warning.message}")
        logger.info(
            f"➕ {service.name} chained after {existing.service_name} for {therapist} at {start} "
            f"(round {round_number}, {combined} min combined)"
        )
        return AssignmentResult(
            entries=[entry], warnings=[w.as_warning(entry.id) for w in warnings]
        )

    def end_service(self, entry_id: str) -> ServiceEntry:
        entry = self.require_entry(entry_id)
        if entry.is_completed:
            raise EntryStateError(f"Service entry {entry_id} has already ended")
        if entry.is_scheduled:
            raise EntryStateError(f"Service entry {entry_id} has not started yet")

        entry.end_time = clock_of(self.clock())
        logger.info(f"🛑 {entry.therapist} finished {entry.service_name} at {entry.end_time}")
        return entry

    def extend_service(self, entry_id: str, minutes: int) -> ServiceEntry:
        """
        Add time to a running service.

        The extra cost is pro-rated from the price before the first extension:
        ``original_price / base_duration * extended_minutes``.
        """
        entry = self.require_entry(entry_id)
        if minutes <= 0:
            raise InvalidSchedule("Extension must be a positive number of minutes")
        if entry.is_completed:
            raise EntryStateError(f"Service entry {entry_id} has already ended")

        if entry.original_price is None:
            entry.original_price = entry.price
        entry.extended_minutes += minutes

        base_duration = self.times.duration(entry.service_name)
        additional = round_half_up(entry.original_price * entry.extended_minutes / base_duration)
        entry.price = entry.original_price + additional

        logger.info(
            f"⏱️ {entry.therapist} {entry.service_name} extended by {minutes} min "
            f"(total +{entry.extended_minutes} min, price {entry.price})"
        )
        return entry

    def tick_scheduled_activation(self, now: datetime, catch_up: bool) -> list[ServiceEntry]:
        """Promote scheduled bookings whose time has arrived into active entries"""
        now = to_local_naive(now)
        activated = []
        for entry in self.entries:
            if not entry.is_scheduled or entry.is_completed or entry.scheduled_time is None:
                continue

            elapsed = (now - entry.scheduled_time).total_seconds()
            if catch_up:
                due = elapsed >= 0
            else:
                due = 0 <= elapsed < ACTIVATION_WINDOW_SECONDS
            if not due:
                continue

            entry.time = clock_of(now)
            entry.is_scheduled = False
            entry.notes = strip_scheduled_marker(entry.notes)
            entry.round = self.rounds.round_for_manual(self.entries, entry.therapist)
            activated.append(entry)
            logger.info(
                f"✅ Scheduled {entry.service_name} for {entry.therapist} activated at "
                f"{entry.time} (round {entry.round})"
            )

        return activated
