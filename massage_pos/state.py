"""Process-wide shop session, shared by the HTTP API and the activation worker"""

import logging
from typing import Optional

from .broadcast import BoardBroadcaster, RedisBoardSink
from .config import BOARD_REDIS_ENABLED, ROSTER_FILE
from .domain.assignment.session import ShopSession
from .domain.roster.repository import load_roster

logger = logging.getLogger(__name__)

_session: Optional[ShopSession] = None
broadcaster = BoardBroadcaster()


def build_session() -> ShopSession:
    roster, catalog = load_roster(ROSTER_FILE)
    if BOARD_REDIS_ENABLED:
        broadcaster.subscribe(RedisBoardSink())
        logger.info("📺 Redis board sink enabled")
    return ShopSession(roster, catalog, publisher=broadcaster.publish)


def get_session() -> ShopSession:
    """Dependency injection for the shop session"""
    global _session
    if _session is None:
        _session = build_session()
    return _session
