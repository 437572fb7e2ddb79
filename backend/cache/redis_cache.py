"""
CacheManager: Redis-based caching with in-memory fallback.

Holds serialized catalog responses (bulk trick and category lists) so the
offline clients' daily syncs don't each rebuild them from SQLite.
Falls back to an in-memory dict if Redis is unavailable.
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from backend.config import get_settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "trickipedia:"


class CacheManager:
    """
    Cache manager with Redis primary and in-memory fallback.

    Features:
    - Automatic Redis detection with silent fallback
    - TTL-based expiration
    - Namespaced catalog keys
    - Hit/miss statistics tracking
    """

    def __init__(self, redis_url: Optional[str] = None, default_ttl: Optional[int] = None):
        settings = get_settings()
        self.redis_url = settings.redis_url if redis_url is None else redis_url
        self.default_ttl = settings.catalog_cache_ttl if default_ttl is None else default_ttl

        self._redis = None
        self._memory: Dict[str, Dict[str, Any]] = {}  # key -> {value, expires_at}
        self._stats = {"hits": 0, "misses": 0}
        self._try_connect_redis()

    def _try_connect_redis(self):
        """Attempt to connect to Redis, fall back to memory if unavailable."""
        if not self.redis_url:
            return
        try:
            import redis
            client = redis.from_url(self.redis_url, decode_responses=True)
            client.ping()
            self._redis = client
            logger.info(f"Response cache using Redis at {self.redis_url}")
        except Exception as e:
            logger.warning(f"Redis unavailable ({e}), using in-memory cache")
            self._redis = None

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Build a namespaced cache key, e.g. make_key("tricks", "all")."""
        return KEY_PREFIX + ":".join(str(p) for p in parts)

    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached value.

        Returns:
            Cached value or None if not found/expired
        """
        if self._redis:
            try:
                cached = self._redis.get(key)
                if cached is not None:
                    self._stats["hits"] += 1
                    return json.loads(cached)
            except Exception as e:
                logger.debug(f"Redis get failed for {key}: {e}")

        entry = self._memory.get(key)
        if entry is not None:
            if entry["expires_at"] > time.time():
                self._stats["hits"] += 1
                return entry["value"]
            del self._memory[key]

        self._stats["misses"] += 1
        return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a value in cache.

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)
        """
        ttl = self.default_ttl if ttl is None else ttl

        if self._redis:
            try:
                self._redis.setex(key, ttl, json.dumps(value))
                return True
            except Exception as e:
                logger.debug(f"Redis set failed for {key}: {e}")

        self._memory[key] = {
            "value": value,
            "expires_at": time.time() + ttl
        }
        return True

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or call loader() and cache its result."""
        value = self.get(key)
        if value is None:
            value = loader()
            self.set(key, value, ttl)
        return value

    def invalidate(self, *keys: str) -> int:
        """Delete several keys; returns how many existed."""
        return sum(1 for key in keys if self.delete(key))

    def delete(self, key: str) -> bool:
        """Delete a cached value."""
        deleted = False

        if self._redis:
            try:
                deleted = self._redis.delete(key) > 0
            except Exception as e:
                logger.debug(f"Redis delete failed for {key}: {e}")

        if key in self._memory:
            del self._memory[key]
            deleted = True

        return deleted

    def stats(self) -> dict:
        """
        Get cache statistics.

        Returns:
            dict with hits, misses, hit_rate, size, backend
        """
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = self._stats["hits"] / total if total > 0 else 0

        size = len(self._memory)
        if self._redis:
            try:
                size = self._redis.dbsize()
            except Exception:
                pass

        return {
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "hit_rate": round(hit_rate, 3),
            "size": size,
            "backend": "redis" if self.is_redis_available else "memory"
        }

    def cleanup_expired(self) -> int:
        """
        Remove expired entries from memory cache.

        Returns:
            Number of entries removed
        """
        now = time.time()
        expired = [k for k, v in self._memory.items() if v["expires_at"] <= now]
        for key in expired:
            del self._memory[key]
        return len(expired)

    @property
    def is_redis_available(self) -> bool:
        """Check if Redis is the active backend."""
        return self._redis is not None


# Global cache instance
_cache_instance: Optional[CacheManager] = None


def get_cache() -> CacheManager:
    """Get the global cache manager instance."""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = CacheManager()
    return _cache_instance
