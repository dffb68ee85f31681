from __future__ import annotations

import os
from functools import lru_cache

import redis
from redis import asyncio as redis_asyncio
from redis.exceptions import RedisError


def redis_url() -> str:
    url = os.getenv("REDIS_URL")
    if not url:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        health_check_interval=30,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    """Shared client for cart state, the menu cache and event publishing."""
    return _build_client(redis_url(), timeout_seconds)


def build_async_client(url: str) -> redis_asyncio.Redis:
    """Dedicated connection for a long-lived pub/sub subscription."""
    return redis_asyncio.from_url(url, health_check_interval=30)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except (RedisError, RuntimeError):
        return False
