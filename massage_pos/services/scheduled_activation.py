"""
Scheduled booking activation
Promotes bookings whose time has arrived into active entries on the board
"""

import logging
from datetime import datetime
from typing import Optional

from ..domain.assignment.models import ServiceEntry
from ..domain.assignment.session import ShopSession

logger = logging.getLogger(__name__)


def activate_scheduled_entries(session: ShopSession, now: Optional[datetime] = None) -> list[ServiceEntry]:
    """
    Run one activation pass over the session's scheduled bookings
    Should be run every minute (see workers/activation_worker.py)

    Returns:
        list: Entries activated by this pass
    """
    pending = sum(1 for e in session.list_entries() if e.is_scheduled and not e.is_completed)
    if not pending:
        logger.debug("✅ No scheduled bookings waiting")
        return []

    activated = session.tick_scheduled_activation(now)

    if activated:
        names = ", ".join(f"{e.therapist} ({e.service_name})" for e in activated)
        logger.info(f"✅ Activated {len(activated)} of {pending} scheduled bookings: {names}")
    else:
        logger.debug(f"⏭️ {pending} scheduled bookings not due yet")

    return activated
