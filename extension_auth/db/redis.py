"""Redis connection management.

When REDIS_URL is configured the authorization code store lives in Redis,
so a code issued by one process (or serverless invocation) can be redeemed
by another. When it is not set, codes stay in process memory, which is only
correct while authorize and token hit the same process.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from extension_auth.core.config import SETTINGS

logger = logging.getLogger(__name__)

# None when REDIS_URL is not set; consumers fall back to in-memory.
if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis() -> AsyncGenerator[None, None]:
    """Verify connectivity on startup and release the pool on shutdown."""
    if redis_pool is None:
        logger.info(
            "No REDIS_URL configured — authorization codes are held in process memory"
        )
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        # Codes cannot be stored without Redis; surface it loudly but keep
        # serving so /health can report the outage.
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
