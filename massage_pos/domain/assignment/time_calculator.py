"""Clock arithmetic for service durations, end times and overlap checks.

Times on the matrix are wall-clock ``HH:MM`` strings with no calendar date. All
arithmetic is done in minutes since midnight; rendered times wrap at 24h. Intervals
used for overlap checks are kept unwrapped so a service running past midnight still
compares correctly against the same evening.
"""

from datetime import datetime
from typing import Iterable, Optional

from ...config import DEFAULT_SERVICE_DURATION
from .models import ServiceEntry

MINUTES_PER_DAY = 24 * 60


def parse_clock(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight"""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_clock(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM", wrapping at 24h"""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def clock_of(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def minutes_of(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval test: [start_a, end_a) intersects [start_b, end_b)"""
    return start_a < end_b and end_a > start_b


class TimeCalculator:
    """Duration lookups by service name plus per-entry interval math"""

    def __init__(self, durations: dict[str, int], default_duration: int = DEFAULT_SERVICE_DURATION):
        self.durations = dict(durations)
        self.default_duration = default_duration

    def duration(self, service_name: str, extended_minutes: int = 0) -> int:
        return self.durations.get(service_name, self.default_duration) + (extended_minutes or 0)

    def end_time(self, start: str, service_name: str, extended_minutes: int = 0) -> str:
        return format_clock(parse_clock(start) + self.duration(service_name, extended_minutes))

    def entry_duration(self, entry: ServiceEntry) -> int:
        return self.duration(entry.service_name, entry.extended_minutes)

    def entry_interval(self, entry: ServiceEntry) -> tuple[int, int]:
        """[start, end) in minutes; actual end for completed entries, computed otherwise"""
        start = parse_clock(entry.time)
        if entry.end_time is not None:
            end = parse_clock(entry.end_time)
            if end < start:
                end += MINUTES_PER_DAY
            return start, end
        return start, start + self.entry_duration(entry)

    def next_available_time(
        self,
        entries: Iterable[ServiceEntry],
        therapist: str,
        now: datetime,
        exclude_entry_id: Optional[str] = None,
    ) -> str:
        """
        When the therapist is free again.

        The latest end among the therapist's non-scheduled entries, or the current
        time if that end has already passed or the therapist has no entries.
        """
        now_minutes = minutes_of(now)
        ends = [
            self.entry_interval(e)[1]
            for e in entries
            if e.therapist == therapist and not e.is_scheduled and e.id != exclude_entry_id
        ]
        if not ends:
            return format_clock(now_minutes)
        return format_clock(max(max(ends), now_minutes))
