from __future__ import annotations

from datetime import datetime

import pytest

from massage_pos.domain.assignment.time_calculator import (
    TimeCalculator,
    format_clock,
    overlaps,
    parse_clock,
)
from tests.utils import make_entry

DURATIONS = {"Thai": 60, "Aroma": 90}


def test_overlap_is_symmetric_and_half_open() -> None:
    intervals = [(600, 660), (630, 690), (660, 720), (500, 800), (700, 710)]
    for a in intervals:
        for b in intervals:
            assert overlaps(*a, *b) == overlaps(*b, *a)

    # touching intervals do not overlap
    assert not overlaps(600, 660, 660, 720)
    assert overlaps(600, 661, 660, 720)


@pytest.mark.parametrize("start", ["00:00", "09:15", "13:59", "22:30", "23:45"])
def test_end_time_round_trips_duration(start: str) -> None:
    times = TimeCalculator(DURATIONS)
    for extended in (0, 15, 30, 90):
        end = times.end_time(start, "Aroma", extended)
        elapsed = (parse_clock(end) - parse_clock(start)) % (24 * 60)
        assert elapsed == times.duration("Aroma", extended)


def test_end_time_wraps_past_midnight_without_date_carry() -> None:
    times = TimeCalculator(DURATIONS)
    assert times.end_time("23:30", "Thai") == "00:30"
    assert format_clock(24 * 60 + 5) == "00:05"


def test_unknown_service_uses_default_duration() -> None:
    times = TimeCalculator(DURATIONS, default_duration=60)
    assert times.duration("Mystery") == 60
    assert times.duration("Mystery", 20) == 80


def test_entry_interval_uses_actual_end_when_completed() -> None:
    times = TimeCalculator(DURATIONS)
    assert times.entry_interval(make_entry(time="10:00")) == (600, 660)
    assert times.entry_interval(make_entry(time="10:00", end_time="10:40")) == (600, 640)
    assert times.entry_interval(make_entry(time="23:30", end_time="00:15")) == (1410, 1455)


def test_next_available_time_is_latest_end_or_now() -> None:
    times = TimeCalculator(DURATIONS)
    entries = [
        make_entry(time="10:00", entry_id="a"),
        make_entry(time="11:00", extended_minutes=30, entry_id="b"),
        make_entry(
            time="15:00",
            is_scheduled=True,
            scheduled_time=datetime(2026, 3, 14, 15, 0),
            entry_id="c",
        ),
    ]

    assert times.next_available_time(entries, "Lisa", datetime(2026, 3, 14, 10, 30)) == "12:30"
    assert times.next_available_time(entries, "Lisa", datetime(2026, 3, 14, 13, 0)) == "13:00"
    assert times.next_available_time(entries, "Sarah", datetime(2026, 3, 14, 9, 5)) == "09:05"
    assert (
        times.next_available_time(entries, "Lisa", datetime(2026, 3, 14, 10, 30), exclude_entry_id="b")
        == "11:00"
    )
