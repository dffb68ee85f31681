from __future__ import annotations

from fastapi import APIRouter, Response, status

from tableorder.infrastructure.cache.redis_client import ping_redis
from tableorder.infrastructure.db.session import ping_database

router = APIRouter()

PROBE_TIMEOUT_SECONDS = 1.0


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks = {
        "database": ping_database(timeout_seconds=PROBE_TIMEOUT_SECONDS),
        "notifications": ping_redis(timeout_seconds=PROBE_TIMEOUT_SECONDS),
    }
    if all(checks.values()):
        return {"status": "ok"}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
