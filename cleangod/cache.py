"""
Caching utilities for frequently read catalog data
Reduces database load for the home page and service listings
"""
import json
import logging
from typing import Any, Optional

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

CATALOG_PREFIX = "catalog:"


class Cache:
    """Cache wrapper with automatic JSON serialization.

    Cache failures never fail the request: reads miss and writes are skipped.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            value = self.store.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        try:
            self.store.set(key, json.dumps(value, default=str), ttl)
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, prefix: str) -> int:
        """Delete all keys starting with prefix (e.g., 'catalog:services:')"""
        try:
            return self.store.delete_prefix(prefix)
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {prefix}: {e}")
            return 0


def catalog_key(*parts: str) -> str:
    return CATALOG_PREFIX + ":".join(parts)


def invalidate_catalog_cache(cache: Cache) -> int:
    """Drop every cached catalog listing after an admin change"""
    return cache.delete_pattern(CATALOG_PREFIX)
