"""Redis cache service for raw award enrichment batches."""

import json
import logging
from typing import Any

import redis.asyncio as redis

from milevalue.config import settings

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("origin", "destination", "departure_date", "cabin")


def enrichment_key(carrier: str, **search: Any) -> str:
    """Cache key for one carrier's batch on one search. Unset search fields read as "*"."""
    key = f"enrichment:{carrier.upper()}"
    if any(search.get(name) for name in SEARCH_FIELDS):
        parts = [str(search.get(name) or "*").upper() for name in SEARCH_FIELDS]
        key = ":".join([key, *parts])
    return key


class CacheService:
    """Redis-backed cache. Any redis failure reads as a miss."""

    def __init__(self, redis_url: str | None = None):
        self._redis_url = redis_url or settings.redis_url
        self._redis: redis.Redis | None = None

    async def _get_redis(self) -> redis.Redis | None:
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning(f"Redis unavailable, cache disabled: {e}")
                self._redis = None
                return None
        return self._redis

    async def get(self, key: str) -> Any | None:
        """Get a value from cache. Returns None on miss or error."""
        try:
            r = await self._get_redis()
            if r is None:
                return None
            raw = await r.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except Exception as e:
            logger.debug(f"Cache read failed for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Set a value in cache with TTL. Returns False on error."""
        try:
            r = await self._get_redis()
            if r is None:
                return False
            await r.set(key, json.dumps(value, default=str), ex=ttl or settings.enrichment_cache_ttl)
            return True
        except Exception as e:
            logger.debug(f"Cache write failed for {key}: {e}")
            return False

    # Typed helpers

    async def get_enrichment(self, carrier: str, **search: Any) -> list[dict] | None:
        cached = await self.get(enrichment_key(carrier, **search))
        return cached if isinstance(cached, list) else None

    async def set_enrichment(self, carrier: str, records: list[dict], **search: Any):
        await self.set(enrichment_key(carrier, **search), records, settings.enrichment_cache_ttl)

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None


cache_service = CacheService()
