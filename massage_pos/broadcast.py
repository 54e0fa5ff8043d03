"""
Board broadcast - pushes the board snapshot to observers after every mutation
Optional Redis sink mirrors the snapshot for display boards running elsewhere
"""

import logging
import os
from threading import Lock
from typing import Callable, Optional

import redis

from .config import BOARD_REDIS_CHANNEL, BOARD_REDIS_KEY
from .domain.assignment.models import BoardSnapshot
from .domain.assignment.schemas import BoardResponse

logger = logging.getLogger(__name__)

BoardObserver = Callable[[BoardSnapshot], None]

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client
    REDIS_URL wins over the individual host/port settings
    """
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for the display board...")

        redis_url = os.getenv("REDIS_URL")

        if redis_url:
            # Mask password in URL for logging
            if "@" in redis_url:
                url_parts = redis_url.split("@")
                protocol = url_parts[0].split(":")[0]
                masked_url = f"{protocol}:****@{url_parts[1]}"
            else:
                masked_url = "****"
            logger.info(f"📡 Using Redis URL connection: {masked_url}")

            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            redis_password = os.getenv("REDIS_PASSWORD", None)
            redis_db = int(os.getenv("REDIS_DB", "0"))
            redis_ssl = os.getenv("REDIS_SSL", "false").lower() == "true"

            logger.info(
                f"📡 Using Redis at {redis_host}:{redis_port} db={redis_db} "
                f"(SSL: {'Enabled' if redis_ssl else 'Disabled'})"
            )
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=redis_password,
                db=redis_db,
                ssl=redis_ssl,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )

        try:
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise
        logger.info("Redis connected successfully")
        redis_client = client

    return redis_client


def serialize_snapshot(snapshot: BoardSnapshot) -> str:
    """JSON payload the board renders, camelCase keys"""
    return BoardResponse.model_validate(snapshot).model_dump_json(by_alias=True)


class BoardBroadcaster:
    """Fan-out of board snapshots to registered observers"""

    def __init__(self):
        self._observers: list[BoardObserver] = []
        self._lock = Lock()

    def subscribe(self, observer: BoardObserver) -> None:
        with self._lock:
            self._observers.append(observer)

    def publish(self, snapshot: BoardSnapshot) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(snapshot)
            except Exception as e:
                logger.error(f"❌ Board observer {observer!r} failed: {e}")


class RedisBoardSink:
    """Stores the latest snapshot under a key and announces it on a channel"""

    def __init__(
        self,
        key: str = BOARD_REDIS_KEY,
        channel: str = BOARD_REDIS_CHANNEL,
        client_factory: Callable[[], redis.Redis] = get_redis_client,
    ):
        self.key = key
        self.channel = channel
        self.client_factory = client_factory
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None:
            try:
                self.redis_client = self.client_factory()
            except Exception as e:
                logger.warning(f"⚠️ Redis board sink unavailable: {e}")
                return None
        return self.redis_client

    def __call__(self, snapshot: BoardSnapshot) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            payload = serialize_snapshot(snapshot)
            client.set(self.key, payload)
            client.publish(self.channel, payload)
            logger.debug(f"✅ Board published to {self.key} / {self.channel}")
            return True
        except Exception as e:
            logger.error(f"❌ Board publish error for {self.key}: {e}")
            return False
