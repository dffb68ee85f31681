from __future__ import annotations

import logging

from redis.exceptions import RedisError

from tableorder.application.errors import TransportError
from tableorder.application.ports.publisher import EventPublisher
from tableorder.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RedisEventPublisher(EventPublisher):
    """Publishes serialized order events on Redis pub/sub channels."""

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        try:
            receivers = get_redis_client(timeout_seconds=self._timeout_seconds).publish(
                channel, message
            )
        except RedisError as exc:
            raise TransportError(f"publish to {channel} failed") from exc
        logger.debug("event_published", extra={"channel": channel, "receivers": receivers})
