from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from redis.exceptions import LockNotOwnedError, RedisError

from tableorder.application.errors import TransportError
from tableorder.application.ports.cache import KeyValueStore
from tableorder.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """Key-value store on Redis; every key written expires after ``ttl_seconds``."""

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def get(self, key: str) -> str | None:
        try:
            value = get_redis_client(timeout_seconds=self._timeout_seconds).get(key)
        except RedisError as exc:
            raise TransportError(f"failed to read {key}") from exc
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            get_redis_client(timeout_seconds=self._timeout_seconds).set(
                name=key,
                value=value,
                ex=ttl_seconds,
            )
        except RedisError as exc:
            raise TransportError(f"failed to write {key}") from exc

    def delete(self, key: str) -> None:
        try:
            get_redis_client(timeout_seconds=self._timeout_seconds).delete(key)
        except RedisError as exc:
            raise TransportError(f"failed to delete {key}") from exc

    def incr(self, key: str, ttl_seconds: int) -> int:
        try:
            pipeline = get_redis_client(timeout_seconds=self._timeout_seconds).pipeline(transaction=True)
            pipeline.incr(key)
            pipeline.expire(key, ttl_seconds)
            value, _ = pipeline.execute()
        except RedisError as exc:
            raise TransportError(f"failed to increment {key}") from exc
        return int(value)

    @contextmanager
    def lock(self, key: str, timeout_seconds: float) -> Iterator[None]:
        """Hold a Redis lock on ``key``; it expires by itself after ``timeout_seconds``."""
        redis_lock = get_redis_client(timeout_seconds=self._timeout_seconds).lock(
            key,
            timeout=timeout_seconds,
            blocking_timeout=timeout_seconds,
        )
        try:
            acquired = redis_lock.acquire()
        except RedisError as exc:
            raise TransportError(f"failed to lock {key}") from exc
        if not acquired:
            raise TransportError(f"timed out waiting for lock {key}")
        try:
            yield
        finally:
            try:
                redis_lock.release()
            except LockNotOwnedError:
                logger.warning("store_lock_expired", extra={"lock_key": key})
            except RedisError as exc:
                raise TransportError(f"failed to unlock {key}") from exc
