"""Liveness endpoint.

Always 200 while the process can answer; ``status`` turns "degraded" when
Redis is configured but unreachable, because authorization codes cannot be
stored or redeemed without it.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from extension_auth.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            logger.warning("Health check: Redis unreachable", exc_info=True)
            checks["redis"] = "unavailable"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    return {"status": overall, "checks": checks}
