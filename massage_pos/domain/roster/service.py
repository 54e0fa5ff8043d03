"""Roster service - clock-in/out and roster reads"""

import logging
from typing import Optional

from fastapi import HTTPException

from ..assignment.session import ShopSession
from ..assignment.time_calculator import clock_of
from .models import ServiceCatalogEntry, Therapist
from .schemas import TherapistResponse

logger = logging.getLogger(__name__)


class RosterService:
    """Service layer for the kiosk and the manager's roster panel"""

    def __init__(self, session: ShopSession):
        self.session = session
        self.roster = session.roster

    def _to_response(self, therapist: Therapist) -> TherapistResponse:
        response = TherapistResponse.model_validate(therapist)
        response.is_busy = self.session.availability.is_busy(therapist.name)
        return response

    def get_therapists(self) -> list[TherapistResponse]:
        return [self._to_response(t) for t in self.roster.list_therapists()]

    def get_therapist(self, name: str) -> Therapist:
        therapist = self.roster.get_therapist(name)
        if not therapist:
            raise HTTPException(status_code=404, detail="Therapist not found")
        return therapist

    def clock_in(self, name: str, time: Optional[str] = None) -> TherapistResponse:
        self.get_therapist(name)
        at = time or clock_of(self.session.clock())
        therapist = self.roster.set_clocked_in(name, True, at=at)
        logger.info(f"🟢 {name} clocked in at {at}")
        return self._to_response(therapist)

    def clock_out(self, name: str, comment: Optional[str] = None) -> TherapistResponse:
        self.get_therapist(name)
        if self.session.availability.is_busy(name):
            logger.warning(f"⚠️ {name} clocked out with a service still running")
        therapist = self.roster.set_clocked_in(name, False, comment=comment)
        logger.info(f"🔴 {name} clocked out")
        return self._to_response(therapist)

    def get_services(self) -> list[ServiceCatalogEntry]:
        return self.session.catalog.list_services()
