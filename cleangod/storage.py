"""
Key-value storage for client-owned state

Carts are keyed by device and never expire; booking drafts are keyed by the
browsing session (tab) and expire after DRAFT_TTL_SECONDS. Both go through the
same small string API so the backend can be Redis in production and an
in-process dictionary in development and tests.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import Request

from .config import STORAGE_BACKEND

logger = logging.getLogger(__name__)


class KeyValueStore:
    """String key-value store with optional per-key expiry"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        """Set key only when it does not exist yet. Returns True if it was set."""
        raise NotImplementedError

    def incr(self, key: str, ttl: int) -> int:
        """Increment a counter; the expiry is set when the counter is created."""
        raise NotImplementedError

    def delete_prefix(self, prefix: str) -> int:
        raise NotImplementedError

    def ping(self) -> bool:
        return True


class MemoryStore(KeyValueStore):
    """In-process store. Not shared between workers."""

    def __init__(self):
        # Format: {key: (value, expires_at or None)}
        self._data: dict[str, tuple[str, Optional[float]]] = {}
        self._lock = Lock()

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.time() >= expires_at:
            del self._data[key]
            return None
        return value

    @staticmethod
    def _expiry(ttl: Optional[int]) -> Optional[float]:
        return time.time() + ttl if ttl else None

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._live(key)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        with self._lock:
            self._data[key] = (value, self._expiry(ttl))

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        with self._lock:
            if self._live(key) is not None:
                return False
            self._data[key] = (value, self._expiry(ttl))
            return True

    def incr(self, key: str, ttl: int) -> int:
        with self._lock:
            current = self._live(key)
            if current is None:
                self._data[key] = ("1", self._expiry(ttl))
                return 1
            count = int(current) + 1
            self._data[key] = (str(count), self._data[key][1])
            return count

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in self._data if k.startswith(prefix)]
            for k in keys:
                del self._data[k]
            return len(keys)


class RedisStore(KeyValueStore):
    """Redis-backed store (standard Redis or Upstash)"""

    def __init__(self, client: redis.Redis):
        self.client = client

    def get(self, key: str) -> Optional[str]:
        return self.client.get(key)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl:
            self.client.setex(key, ttl, value)
        else:
            self.client.set(key, value)

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        return bool(self.client.set(key, value, nx=True, ex=ttl))

    def incr(self, key: str, ttl: int) -> int:
        pipe = self.client.pipeline()
        pipe.incr(key)
        pipe.expire(key, ttl, nx=True)
        count, _ = pipe.execute()
        return int(count)

    def delete_prefix(self, prefix: str) -> int:
        keys = list(self.client.scan_iter(match=f"{prefix}*"))
        if keys:
            deleted = self.client.delete(*keys)
            logger.debug(f"✅ Storage DELETE prefix: {prefix} ({deleted} keys)")
            return deleted
        return 0

    def ping(self) -> bool:
        return bool(self.client.ping())


def get_redis_client() -> redis.Redis:
    """
    Create a Redis client
    Supports both a REDIS_URL (Upstash or other managed Redis) and individual settings
    """
    redis_url = os.getenv("REDIS_URL")

    if redis_url:
        # Mask password in URL for logging
        if "@" in redis_url:
            url_parts = redis_url.split("@")
            protocol = url_parts[0].split(":")[0]
            masked_url = f"{protocol}:****@{url_parts[1]}"
        else:
            masked_url = "****"
        logger.info(f"📡 Using Redis URL connection: {masked_url}")

        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
    else:
        redis_host = os.getenv("REDIS_HOST", "localhost")
        redis_port = int(os.getenv("REDIS_PORT", "6379"))
        redis_password = os.getenv("REDIS_PASSWORD", None)
        redis_db = int(os.getenv("REDIS_DB", "0"))
        redis_ssl = os.getenv("REDIS_SSL", "false").lower() == "true"

        client = redis.Redis(
            host=redis_host,
            port=redis_port,
            password=redis_password,
            db=redis_db,
            ssl=redis_ssl,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
        ssl_status = "with SSL" if redis_ssl else "without SSL"
        logger.info(f"📡 Using Redis at {redis_host}:{redis_port} ({ssl_status})")

    return client


def build_storage(backend: str = STORAGE_BACKEND) -> KeyValueStore:
    """Create the configured storage backend"""
    if backend == "memory":
        logger.warning("⚠️ Using in-memory storage - carts and drafts are lost on restart")
        return MemoryStore()
    if backend == "redis":
        return RedisStore(get_redis_client())
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


def get_storage(request: Request) -> KeyValueStore:
    return request.app.state.storage
