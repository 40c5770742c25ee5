"""Health and readiness endpoints.

  /health (liveness):  "Is this process alive?"  Always 200; the body's
    ``status`` reports degraded dependencies without triggering a restart.

  /ready (readiness):  "Can this instance take traffic right now?"
    503 when the configured database is unreachable, so the load balancer
    stops routing here until it recovers.  Redis is optional (the token
    blacklist falls back to memory) and never fails readiness.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response

from app.db import engine as db_engine
from app.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        logger.warning("Redis health check failed", exc_info=True)
        return "degraded"
    return "ok"


async def _check_database() -> str:
    if db_engine.engine is None:
        return "not_configured"
    try:
        await db_engine.ping_database()
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    """Liveness probe + dependency status."""
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    """Readiness probe: 503 if the database is configured but unreachable."""
    if await _check_database() == "degraded":
        return Response(status_code=503)
    return Response(status_code=200)
