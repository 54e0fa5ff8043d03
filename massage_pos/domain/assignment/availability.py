"""Roster & availability resolver - who may take work right now"""

from datetime import datetime
from typing import Callable, Optional

from ..roster.repository import RosterRepository
from .models import ServiceEntry
from .time_calculator import (
    MINUTES_PER_DAY,
    TimeCalculator,
    format_clock,
    minutes_of,
    overlaps,
    parse_clock,
)


class AvailabilityResolver:
    """Pure reads over the live entry list and the roster"""

    def __init__(
        self,
        roster: RosterRepository,
        entries: list[ServiceEntry],
        times: TimeCalculator,
        clock: Callable[[], datetime],
    ):
        self.roster = roster
        self.entries = entries
        self.times = times
        self.clock = clock

    def eligible_therapists(self) -> list[str]:
        """Clocked in and certified for at least one service, in roster order"""
        return [
            t.name for t in self.roster.list_therapists() if t.clocked_in and t.certified_services
        ]

    def busy_therapists(self) -> set[str]:
        return {e.therapist for e in self.entries if e.is_active}

    def is_busy(self, name: str) -> bool:
        return any(e.therapist == name and e.is_active for e in self.entries)

    def is_certified(self, name: str, service_id: str) -> bool:
        therapist = self.roster.get_therapist(name)
        return bool(therapist and therapist.is_certified(service_id))

    def certified_for(self, service_id: str) -> list[str]:
        """Every roster therapist certified for the service, clocked in or not"""
        return [t.name for t in self.roster.list_therapists() if t.is_certified(service_id)]

    def blocking_intervals(
        self, name: str, exclude_entry_id: Optional[str] = None
    ) -> list[tuple[int, int, ServiceEntry]]:
        """Intervals of the therapist's non-completed entries on today's clock"""
        today = self.clock().date()
        intervals = []
        for entry in self.entries:
            if entry.therapist != name or entry.is_completed or entry.id == exclude_entry_id:
                continue
            if entry.is_scheduled:
                if entry.scheduled_time is None or entry.scheduled_time.date() != today:
                    continue
                start = minutes_of(entry.scheduled_time)
                intervals.append((start, start + self.times.entry_duration(entry), entry))
            else:
                start, end = self.times.entry_interval(entry)
                intervals.append((start, end, entry))
        return intervals

    def _blocking(
        self, start: int, end: int, intervals: list[tuple[int, int, ServiceEntry]]
    ) -> Optional[tuple[int, ServiceEntry]]:
        """First interval hit by [start, end); returns its end on the request's clock"""
        for other_start, other_end, entry in intervals:
            if overlaps(start, end, other_start, other_end):
                return other_end, entry
            # services running past midnight are stored unwrapped
            if overlaps(start + MINUTES_PER_DAY, end + MINUTES_PER_DAY, other_start, other_end):
                return other_end - MINUTES_PER_DAY, entry
        return None

    def find_conflict(
        self,
        name: str,
        start_time: str,
        service_name: str,
        extended_minutes: int = 0,
        exclude_entry_id: Optional[str] = None,
    ) -> Optional[ServiceEntry]:
        start = parse_clock(start_time)
        end = start + self.times.duration(service_name, extended_minutes)
        hit = self._blocking(start, end, self.blocking_intervals(name, exclude_entry_id))
        return hit[1] if hit else None

    def earliest_free_start(
        self,
        name: str,
        start_time: str,
        service_name: str,
        extended_minutes: int = 0,
        exclude_entry_id: Optional[str] = None,
    ) -> str:
        """First start at or after start_time that clears every blocking interval"""
        duration = self.times.duration(service_name, extended_minutes)
        intervals = self.blocking_intervals(name, exclude_entry_id)
        start = parse_clock(start_time)
        while True:
            hit = self._blocking(start, start + duration, intervals)
            if hit is None:
                return format_clock(start)
            start = hit[0]

    def is_available_at(
        self,
        name: str,
        start_time: str,
        service_name: str,
        extended_minutes: int = 0,
        exclude_entry_id: Optional[str] = None,
    ) -> bool:
        return (
            self.find_conflict(name, start_time, service_name, extended_minutes, exclude_entry_id)
            is None
        )
