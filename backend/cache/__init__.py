"""Response caching for catalog reads."""
from .redis_cache import CacheManager, get_cache

__all__ = ["CacheManager", "get_cache"]
