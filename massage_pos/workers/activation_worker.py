"""
Scheduled booking activation worker
Runs inside the API process and activates due bookings once a minute
"""

import asyncio
import logging

from ..config import ACTIVATION_INTERVAL_SECONDS
from ..domain.assignment.session import ShopSession
from ..services.scheduled_activation import activate_scheduled_entries

logger = logging.getLogger(__name__)


async def run_activation_worker(session: ShopSession, interval: int = ACTIVATION_INTERVAL_SECONDS):
    """
    Main worker loop - checks immediately, then every ``interval`` seconds
    """
    logger.info(f"🚀 Starting scheduled activation worker (every {interval}s)...")

    while True:
        try:
            activate_scheduled_entries(session)
        except Exception as e:
            logger.error(f"❌ Error in activation worker loop: {e}")

        await asyncio.sleep(interval)
