from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from massage_pos.domain.assignment.errors import (
    CertificationMismatch,
    EntryStateError,
    InvalidSchedule,
    LeadTimeViolation,
)
from massage_pos.domain.assignment.models import PaymentInfo
from massage_pos.services.scheduled_activation import activate_scheduled_entries
from tests.utils import FOOT, THAI, FakeClock, make_session, therapist_row

MORNING = datetime(2026, 3, 14, 9, 0)


def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return MORNING.replace(hour=hour, minute=minute, second=second)


@pytest.fixture
def morning_clock() -> FakeClock:
    return FakeClock(MORNING)


@pytest.fixture
def booked(morning_clock):
    session = make_session([therapist_row("D", [THAI])], clock=morning_clock)
    result = session.create_scheduled_entry(THAI, "D", at(14, 30), PaymentInfo(notes="VIP"))
    return session, result.entry


def test_scheduled_entry_is_inert_until_activated(booked) -> None:
    session, entry = booked

    assert entry.is_scheduled
    assert entry.round is None
    assert entry.time == "14:30"
    assert entry.notes == "Scheduled for 2026-03-14 14:30 | VIP"
    assert not session.availability.is_busy("D")
    assert session.rounds.counts == {}

    # still free for walk-ins
    assert session.create_auto_entry(THAI).entry.therapist == "D"


def test_lead_time_rule_rejects_bookings_too_close(booked) -> None:
    session, _ = booked

    with pytest.raises(LeadTimeViolation):
        session.create_scheduled_entry(THAI, "D", at(14, 0))
    with pytest.raises(LeadTimeViolation):
        session.create_scheduled_entry(THAI, "D", at(13, 15))
    with pytest.raises(LeadTimeViolation):
        session.create_scheduled_entry(THAI, "D", at(15, 0))

    early = session.create_scheduled_entry(THAI, "D", at(12, 0))
    assert early.entry.time == "12:00"


def test_lead_time_rule_checks_running_services(morning_clock) -> None:
    session = make_session([therapist_row("D", [THAI])], clock=morning_clock)
    session.create_auto_entry(THAI)

    with pytest.raises(LeadTimeViolation):
        session.create_scheduled_entry(THAI, "D", at(9, 45))

    later = session.create_scheduled_entry(THAI, "D", at(10, 0))
    assert later.entry.is_scheduled


def test_scheduled_time_must_be_in_the_future(booked) -> None:
    session, _ = booked

    with pytest.raises(InvalidSchedule):
        session.create_scheduled_entry(THAI, "D", at(8, 59))


def test_scheduled_booking_requires_certification(booked) -> None:
    session, _ = booked

    with pytest.raises(CertificationMismatch):
        session.create_scheduled_entry(FOOT, "D", at(18, 0))


def test_scheduled_booking_accepts_aware_datetimes(morning_clock) -> None:
    session = make_session([therapist_row("D", [THAI])], clock=morning_clock)
    local = at(16, 0).astimezone()

    entry = session.create_scheduled_entry(THAI, "D", local.astimezone(timezone.utc)).entry

    assert entry.scheduled_time == at(16, 0)
    assert entry.time == "16:00"


def test_scheduled_entries_cannot_be_chained_or_ended(booked) -> None:
    session, entry = booked

    with pytest.raises(EntryStateError):
        session.add_chained_service(entry.id, THAI)
    with pytest.raises(EntryStateError):
        session.end_service(entry.id)


# ---------------------------------------------------------------------------
# Activation
# ---------------------------------------------------------------------------


def test_activation_waits_for_scheduled_time(booked, morning_clock) -> None:
    session, entry = booked
    morning_clock.now = at(14, 29, 59)

    assert activate_scheduled_entries(session) == []
    assert entry.is_scheduled


def test_catch_up_activates_overdue_bookings(booked, morning_clock) -> None:
    session, entry = booked
    morning_clock.now = at(15, 10)

    activated = activate_scheduled_entries(session)

    assert activated == [entry]
    assert not entry.is_scheduled
    assert entry.time == "15:10"
    assert entry.notes == "VIP"
    assert entry.round == 1
    assert session.availability.is_busy("D")


def test_activated_round_follows_manual_rule(booked, morning_clock) -> None:
    session, entry = booked
    walk_in = session.create_auto_entry(THAI).entry
    session.end_service(walk_in.id)
    morning_clock.now = at(14, 30)

    session.tick_scheduled_activation()

    assert walk_in.round == 1
    assert entry.round == 2


def test_window_mode_only_activates_inside_the_first_minute(morning_clock) -> None:
    session = make_session([therapist_row("D", [THAI])], clock=morning_clock, catch_up=False)
    entry = session.create_scheduled_entry(THAI, "D", at(14, 30)).entry

    assert session.tick_scheduled_activation(at(14, 31)) == []
    assert entry.is_scheduled

    activated = session.tick_scheduled_activation(at(14, 30) + timedelta(seconds=30))
    assert activated == [entry]
    assert entry.notes == ""


def test_activation_publishes_only_when_something_changed(morning_clock) -> None:
    published = []
    session = make_session(
        [therapist_row("D", [THAI])], clock=morning_clock, publisher=published.append
    )
    session.create_scheduled_entry(THAI, "D", at(14, 30))
    assert len(published) == 1

    session.tick_scheduled_activation(at(12, 0))
    assert len(published) == 1

    session.tick_scheduled_activation(at(14, 30))
    assert len(published) == 2
    assert published[-1].entries[0].is_scheduled is False
