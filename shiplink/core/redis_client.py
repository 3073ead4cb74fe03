"""
Redis connection helper

Used by the durable rate cache. A missing or unreachable Redis is never
fatal: callers receive None and degrade to in-memory caching.
"""
import logging
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


async def connect_redis(url: str) -> Optional[redis.Redis]:
    """Open a Redis client and verify it with PING.

    Returns None if url is empty or the server cannot be reached.
    """
    if not url:
        return None

    client = None
    try:
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True
        )
        # Test connection
        await client.ping()
        logger.info("[REDIS] Connection established")
        return client
    except Exception as e:
        logger.warning(f"[REDIS] Connection failed: {e}. Falling back to in-memory.")
        if client is not None:
            await close_redis(client)
        return None


async def close_redis(client: Optional[redis.Redis]) -> None:
    """Close a Redis connection on shutdown."""
    if client is None:
        return
    try:
        await client.aclose()
    except Exception as e:
        logger.debug(f"[REDIS] Close failed: {e}")
