"""
Rate Cache v1.0.0

Memoizes rate quotes for identical criteria within a TTL window.

Backends:
- InMemoryRateCache: dict with absolute expiry, lazy eviction on read and a
  periodic sweep task
- RedisRateCache: JSON values under "shipstation:rate:" with SETEX TTL
- NullRateCache: caching disabled, every lookup misses

Caching is an optimization. Backend errors are logged and treated as a
miss; they never reach the caller.
"""
import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import redis.asyncio as redis

from shiplink.core.exceptions import RateCacheError
from shiplink.core.redis_client import close_redis, connect_redis
from shiplink.models.shipping import RateCriteria, Rate, ResidentialIndicator
from shiplink.utils.units import format_number

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_SWEEP_INTERVAL_SECONDS = 300
REDIS_KEY_PREFIX = "shipstation:rate:"


def _key_part(value: Optional[str]) -> str:
    return "".join((value or "").split()).upper()


def generate_cache_key(criteria: RateCriteria) -> str:
    """
    Derive the cache key for a rate lookup.

    Fields in fixed order, colon-joined: destination postal code, region,
    country, weight, then dimensions and shipping class when present, then the
    residential flag when set. Units are already canonical (Weight/Dimensions
    normalize on construction) and numbers are rendered without trailing
    zeros, so equivalent criteria always share a key.
    """
    ship_to = criteria.ship_to
    parts = [
        _key_part(ship_to.postal_code),
        _key_part(ship_to.state_province),
        _key_part(ship_to.country_code),
        f"{format_number(criteria.weight.value)}{criteria.weight.unit.value}",
    ]

    if criteria.dimensions:
        d = criteria.dimensions
        parts.append(
            f"{format_number(d.length)}x{format_number(d.width)}x{format_number(d.height)}{d.unit.value}"
        )

    if criteria.shipping_class:
        parts.append(criteria.shipping_class.strip().lower())

    if criteria.residential is not None:
        parts.append(ResidentialIndicator.from_flag(criteria.residential).value)

    return ":".join(parts)


class RateCache(ABC):
    """Rate cache interface."""

    backend: str = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Optional[List[Rate]]:
        pass

    @abstractmethod
    async def set(self, key: str, rates: List[Rate], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        pass

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    async def close(self) -> None:
        """Release backend resources."""


@dataclass
class CacheEntry:
    key: str
    rates: List[Rate]
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryRateCache(RateCache):
    """
    Process-local rate cache.

    Entries are immutable once written; concurrent misses for the same key
    resolve last-writer-wins.

    Attributes:
        clock: Monotonic time source in seconds, injectable for tests
    """

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._sweeper: Optional[asyncio.Task] = None
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    async def get(self, key: str) -> Optional[List[Rate]]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self.clock()):
            # Lazy eviction
            del self._entries[key]
            self._evictions += 1
            self._misses += 1
            logger.debug(f"[RATE_CACHE] Expired: {key}")
            return None

        self._hits += 1
        logger.debug(f"[RATE_CACHE] Hit: {key} ({len(entry.rates)} rates)")
        return list(entry.rates)

    async def set(self, key: str, rates: List[Rate], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._entries[key] = CacheEntry(
            key=key,
            rates=list(rates),
            expires_at=self.clock() + ttl_seconds,
        )
        logger.debug(f"[RATE_CACHE] Stored: {key} ({len(rates)} rates, ttl {ttl_seconds}s)")

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()
        logger.info("[RATE_CACHE] Cleared")

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        now = self.clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._evictions += len(expired)
        if expired:
            logger.debug(f"[RATE_CACHE] Swept {len(expired)} expired entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    # ----- Background sweep -----

    def start_sweeper(self, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS) -> asyncio.Task:
        """Start the periodic cleanup task on the running loop.

        Raises:
            RateCacheError: interval_seconds is not positive
        """
        if interval_seconds <= 0:
            raise RateCacheError(f"Sweep interval must be positive, got {interval_seconds}")
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(interval_seconds))
        return self._sweeper

    async def _sweep_forever(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.cleanup()

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def close(self) -> None:
        await self.stop_sweeper()

    def get_stats(self) -> Dict:
        """
        Get cache statistics.

        Returns:
            Dict with hits, misses, hit_rate, evictions, size
        """
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0.0

        return {
            "backend": self.backend,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": f"{hit_rate:.1f}%",
            "evictions": self._evictions,
            "size": len(self._entries),
        }


class RedisRateCache(RateCache):
    """Shared rate cache on Redis. Every backend error is a logged miss/no-op."""

    backend = "redis"

    def __init__(self, client: redis.Redis, key_prefix: str = REDIS_KEY_PREFIX):
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[List[Rate]]:
        try:
            data = await self.client.get(self._key(key))
            if not data:
                return None
            return [Rate.from_dict(r) for r in json.loads(data)]
        except Exception as e:
            logger.warning(f"[RATE_CACHE] Redis get failed for {key}: {e}")
            return None

    async def set(self, key: str, rates: List[Rate], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        try:
            await self.client.setex(
                self._key(key),
                ttl_seconds,
                json.dumps([r.to_dict() for r in rates]),
            )
        except Exception as e:
            logger.warning(f"[RATE_CACHE] Redis set failed for {key}: {e}")

    async def invalidate(self, key: str) -> None:
        try:
            await self.client.delete(self._key(key))
        except Exception as e:
            logger.warning(f"[RATE_CACHE] Redis invalidate failed for {key}: {e}")

    async def clear(self) -> None:
        try:
            keys = [k async for k in self.client.scan_iter(match=f"{self.key_prefix}*")]
            if keys:
                await self.client.delete(*keys)
            logger.info(f"[RATE_CACHE] Cleared {len(keys)} redis entries")
        except Exception as e:
            logger.warning(f"[RATE_CACHE] Redis clear failed: {e}")

    async def close(self) -> None:
        await close_redis(self.client)


class NullRateCache(RateCache):
    """Caching disabled."""

    backend = "disabled"

    async def get(self, key: str) -> Optional[List[Rate]]:
        return None

    async def set(self, key: str, rates: List[Rate], ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        return None

    async def invalidate(self, key: str) -> None:
        return None

    async def clear(self) -> None:
        return None


async def create_rate_cache(
    enabled: bool = True,
    redis_url: Optional[str] = None,
    sweep_interval_seconds: Optional[float] = DEFAULT_SWEEP_INTERVAL_SECONDS,
) -> RateCache:
    """
    Pick a cache backend. Never raises.

    Args:
        enabled: False returns a NullRateCache
        redis_url: Preferred durable backend; unreachable falls back to memory
        sweep_interval_seconds: In-memory sweep period, None to skip the sweeper

    Returns:
        The selected RateCache
    """
    if not enabled:
        logger.info("[RATE_CACHE] Caching disabled")
        return NullRateCache()

    if redis_url:
        client = await connect_redis(redis_url)
        if client is not None:
            logger.info("[RATE_CACHE] Using redis rate cache")
            return RedisRateCache(client)
        logger.warning("[RATE_CACHE] Redis unreachable, falling back to in-memory rate cache")

    cache = InMemoryRateCache()
    if sweep_interval_seconds and sweep_interval_seconds > 0:
        cache.start_sweeper(sweep_interval_seconds)
    logger.info("[RATE_CACHE] Using in-memory rate cache")
    return cache
