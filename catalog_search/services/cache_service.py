"""Two-tier response cache.

- L1: In-process TTL cache (cachetools) - skips a network round trip for hot queries
- L2: Redis - shared across instances, entries expire with SETEX

Values are strings (serialized payloads), so what comes back from either tier
is exactly what was stored. Every tier error is logged and swallowed: a broken
cache behaves like an empty one and never fails the caller.

Usage:
    cache = CacheService(redis_client)

    value = await cache.get("search_results:ab12cd34ef56")
    await cache.set("search_results:ab12cd34ef56", payload, ttl=300)
"""
import hashlib
import time
from typing import Any, Dict, Optional

import redis.asyncio as redis
from cachetools import TTLCache
from catalog_search.core.config import settings
from catalog_search.core.logging import get_logger
from catalog_search.core.metrics import (
    search_cache_errors_total,
    search_cache_hits_total,
    search_cache_misses_total,
)

logger = get_logger(__name__)


class CacheService:
    """Response cache with L1 (in-memory) and L2 (Redis) tiers."""

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        l1_max_size: Optional[int] = None,
        l1_ttl: Optional[int] = None,
    ):
        self.l1_cache: TTLCache = TTLCache(
            maxsize=l1_max_size or settings.SEARCH_CACHE_L1_MAX_SIZE,
            ttl=l1_ttl or settings.SEARCH_CACHE_TTL_SECONDS,
        )
        self._redis_client = redis_client

        logger.info(
            "cache_service_initialized",
            l1_max_size=self.l1_cache.maxsize,
            l1_ttl=self.l1_cache.ttl,
            l2_enabled=redis_client is not None,
        )

    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache, checking L1 first, then L2.

        Returns:
            Cached value if found, None otherwise (including on any cache error)
        """
        try:
            value = self.l1_cache.get(key)
        except Exception as e:
            search_cache_errors_total.labels(cache_layer="l1", operation="get").inc()
            logger.warning("l1_cache_error", error=str(e))
            value = None

        if value is not None:
            search_cache_hits_total.labels(cache_layer="l1").inc()
            logger.debug("cache_hit_l1", key=key)
            return value
        search_cache_misses_total.labels(cache_layer="l1").inc()

        if self._redis_client is None:
            return None

        try:
            start_time = time.time()
            value = await self._redis_client.get(key)
        except Exception as e:
            search_cache_errors_total.labels(cache_layer="l2", operation="get").inc()
            logger.warning("l2_cache_error", error=str(e))
            return None

        if value is None:
            search_cache_misses_total.labels(cache_layer="l2").inc()
            logger.debug("cache_miss", key=key)
            return None

        if isinstance(value, bytes):
            value = value.decode("utf-8")

        # Promote to L1 for future quick access
        self.l1_cache[key] = value
        search_cache_hits_total.labels(cache_layer="l2").inc()
        logger.debug("cache_hit_l2", key=key, latency_seconds=time.time() - start_time)
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        Set value in both L1 and L2 caches.

        Returns:
            True if every configured tier stored the value, False otherwise
        """
        ttl = ttl or settings.SEARCH_CACHE_TTL_SECONDS
        success = True

        try:
            self.l1_cache[key] = value
        except Exception as e:
            search_cache_errors_total.labels(cache_layer="l1", operation="set").inc()
            logger.warning("l1_cache_set_error", error=str(e))
            success = False

        if self._redis_client is not None:
            try:
                await self._redis_client.setex(key, ttl, value)
            except Exception as e:
                search_cache_errors_total.labels(cache_layer="l2", operation="set").inc()
                logger.warning("l2_cache_set_error", error=str(e))
                success = False

        if success:
            logger.debug("cache_set", key=key, ttl=ttl)
        return success

    async def delete(self, key: str) -> bool:
        """Delete key from both tiers."""
        self.l1_cache.pop(key, None)
        if self._redis_client is None:
            return True
        try:
            await self._redis_client.delete(key)
            return True
        except Exception as e:
            search_cache_errors_total.labels(cache_layer="l2", operation="delete").inc()
            logger.warning("l2_cache_delete_error", error=str(e))
            return False

    def get_stats(self) -> Dict[str, Any]:
        """L1 statistics for monitoring."""
        return {
            "l1": {
                "size": len(self.l1_cache),
                "max_size": self.l1_cache.maxsize,
                "ttl": self.l1_cache.ttl,
            },
            "l2_enabled": self._redis_client is not None,
        }


def generate_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate a stable cache key from prefix and arguments.

    Example:
        generate_cache_key("search_results", "almond", limit=5, offset=0)
        # Returns: "search_results:<16 hex chars>"
    """
    key_parts = [str(arg) for arg in args]
    key_parts.extend(f"{k}={v}" for k, v in sorted(kwargs.items()))
    key_string = "|".join(key_parts)

    key_hash = hashlib.sha256(key_string.encode("utf-8")).hexdigest()[:16]

    return f"{prefix}:{key_hash}"
