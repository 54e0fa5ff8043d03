"""Roster repository - in-memory therapist roster and service catalog"""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Callable, Iterable, Optional, Union

from pydantic import ValidationError

from .models import ServiceCatalogEntry, Therapist
from .schemas import RosterFile, ServiceRow, TherapistRow

logger = logging.getLogger(__name__)

RosterListener = Callable[[], None]

DEFAULT_THERAPISTS = [
    {"name": "Lisa", "certifiedServices": ["1", "2", "3", "4"], "commissionRate": 50},
    {"name": "Sarah", "certifiedServices": ["1", "2", "5", "6"], "commissionRate": 50},
    {"name": "Emma", "certifiedServices": ["3", "4", "7"], "commissionRate": 45},
    {"name": "Maya", "certifiedServices": ["1", "2", "3", "4", "5", "6"], "commissionRate": 50},
    {"name": "Anna", "certifiedServices": ["1", "8"], "commissionRate": 50},
]

DEFAULT_SERVICES = [
    {"id": "1", "name": "Thai", "price": 400, "duration": 60},
    {"id": "2", "name": "Foot", "price": 300, "duration": 60},
    {"id": "3", "name": "Oil", "price": 500, "duration": 60},
    {"id": "4", "name": "Aroma", "price": 350, "duration": 60},
    {"id": "5", "name": "Hot Oil", "price": 450, "duration": 60},
    {"id": "6", "name": "Herbal", "price": 400, "duration": 60},
    {"id": "7", "name": "Sport", "price": 500, "duration": 60},
    {"id": "8", "name": "Back", "price": 350, "duration": 60},
]


class RosterRepository:
    """Therapists in declaration order plus their clock-in state"""

    def __init__(self, therapists: Iterable[Therapist]):
        self._therapists: dict[str, Therapist] = {}
        for therapist in therapists:
            if therapist.name in self._therapists:
                raise ValueError(f"Duplicate therapist name: {therapist.name}")
            self._therapists[therapist.name] = therapist
        self._listeners: list[RosterListener] = []
        self._lock = Lock()

    def list_therapists(self) -> list[Therapist]:
        return list(self._therapists.values())

    def get_therapist(self, name: str) -> Optional[Therapist]:
        return self._therapists.get(name)

    def list_clocked_in(self) -> list[str]:
        return [t.name for t in self._therapists.values() if t.clocked_in]

    def certified_services(self, name: str) -> set[str]:
        therapist = self._therapists.get(name)
        return set(therapist.certified_services) if therapist else set()

    def set_clocked_in(
        self,
        name: str,
        clocked_in: bool,
        at: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> Optional[Therapist]:
        """Update clock-in state and notify listeners when it actually changed"""
        with self._lock:
            therapist = self._therapists.get(name)
            if therapist is None:
                return None
            changed = therapist.clocked_in != clocked_in
            therapist.clocked_in = clocked_in
            if clocked_in:
                therapist.clocked_in_at = at
                therapist.clock_out_comment = None
            else:
                therapist.clock_out_comment = comment

        if changed:
            self._notify()
        return therapist

    def add_listener(self, listener: RosterListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class ServiceCatalog:
    """Static service reference data keyed by id"""

    def __init__(self, services: Iterable[ServiceCatalogEntry]):
        self._services: dict[str, ServiceCatalogEntry] = {s.id: s for s in services}

    def get(self, service_id: str) -> Optional[ServiceCatalogEntry]:
        return self._services.get(service_id)

    def list_services(self) -> list[ServiceCatalogEntry]:
        return list(self._services.values())

    def durations(self) -> dict[str, int]:
        """Base duration per service name"""
        return {s.name: s.duration for s in self._services.values()}


def build_therapists(rows: Iterable[Union[dict, TherapistRow]]) -> list[Therapist]:
    therapists = []
    for row in rows:
        data = TherapistRow.model_validate(row)
        therapists.append(
            Therapist(
                name=data.name,
                certified_services=list(data.certifiedServices),
                commission_rate=data.commissionRate,
                clocked_in=data.clockedIn,
            )
        )
    return therapists


def build_services(rows: Iterable[Union[dict, ServiceRow]]) -> list[ServiceCatalogEntry]:
    services = []
    for row in rows:
        data = ServiceRow.model_validate(row)
        services.append(
            ServiceCatalogEntry(id=data.id, name=data.name, price=data.price, duration=data.duration)
        )
    return services


def load_roster(path: Optional[str] = None) -> tuple[RosterRepository, ServiceCatalog]:
    """Load roster and catalog from a JSON file, falling back to the built-in shop data"""
    therapist_rows = DEFAULT_THERAPISTS
    service_rows = DEFAULT_SERVICES

    try:
        if path:
            roster_path = Path(path)
            logger.info(f"📋 Loading roster from {roster_path}")
            with roster_path.open("r", encoding="utf-8") as handle:
                roster_file = RosterFile.model_validate(json.load(handle))
            if roster_file.therapists is not None:
                therapist_rows = roster_file.therapists
            if roster_file.services is not None:
                service_rows = roster_file.services

        therapists = build_therapists(therapist_rows)
        services = build_services(service_rows)
    except ValidationError as e:
        logger.error(f"❌ Invalid roster data in {path or 'built-in roster'}: {e}")
        raise

    logger.info(f"✅ Roster loaded: {len(therapists)} therapists, {len(services)} services")
    return RosterRepository(therapists), ServiceCatalog(services)
