"""Builders shared by the assignment, payment and API tests."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from massage_pos.domain.assignment.models import ServiceEntry
from massage_pos.domain.assignment.session import ShopSession
from massage_pos.domain.roster.repository import (
    RosterRepository,
    ServiceCatalog,
    build_services,
    build_therapists,
)

SERVICE_ROWS: Sequence[dict] = (
    {"id": "1", "name": "Thai", "price": 400, "duration": 60},
    {"id": "2", "name": "Foot", "price": 300, "duration": 60},
    {"id": "3", "name": "Oil", "price": 500, "duration": 60},
    {"id": "4", "name": "Aroma", "price": 350, "duration": 90},
)

THAI, FOOT, OIL, AROMA = "1", "2", "3", "4"

TODAY = datetime(2026, 3, 14, 10, 0)


class FakeClock:
    """Callable clock the tests can move forward"""

    def __init__(self, now: datetime = TODAY) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, hour: int, minute: int = 0) -> None:
        self.now = self.now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def therapist_row(name: str, services: Iterable[str], clocked_in: bool = True) -> dict:
    return {"name": name, "certifiedServices": list(services), "clockedIn": clocked_in}


def make_session(
    therapists: Sequence[dict],
    clock: Optional[FakeClock] = None,
    services: Sequence[dict] = SERVICE_ROWS,
    publisher=None,
    catch_up: bool = True,
) -> ShopSession:
    roster = RosterRepository(build_therapists(therapists))
    catalog = ServiceCatalog(build_services(services))
    return ShopSession(
        roster,
        catalog,
        clock=clock or FakeClock(),
        publisher=publisher,
        lead_minutes=60,
        chain_limit_minutes=120,
        catch_up=catch_up,
    )


def make_entry(
    therapist: str = "Lisa",
    service_name: str = "Thai",
    time: str = "10:00",
    end_time: Optional[str] = None,
    extended_minutes: int = 0,
    is_scheduled: bool = False,
    scheduled_time: Optional[datetime] = None,
    entry_id: str = "e1",
) -> ServiceEntry:
    return ServiceEntry(
        id=entry_id,
        therapist=therapist,
        service_id=THAI,
        service_name=service_name,
        service=f"{service_name} 400",
        price=400,
        time=time,
        column=1,
        round=1,
        end_time=end_time,
        extended_minutes=extended_minutes,
        is_scheduled=is_scheduled,
        scheduled_time=scheduled_time,
    )
