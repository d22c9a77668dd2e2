"""
Key/value record store adapters.

The record store holds JSON metadata documents and rate-limit counters, each
with an optional per-key TTL. Repositories layer logical namespaces on top.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from common.exceptions import RecordStoreException
from common.logging import get_logger

logger = get_logger("record_store")


class BaseRecordStore(ABC):
    """Abstract key/value store with TTL support."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when absent or expired."""
        pass

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        pass

    @abstractmethod
    async def list_keys(self, prefix: str) -> List[str]:
        """List live keys starting with `prefix`, sorted."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the store is reachable."""
        pass


class RedisRecordStore(BaseRecordStore):
    """Record store backed by Redis (redis.asyncio)."""

    def __init__(self, redis_url: str, client=None):
        self.redis_url = redis_url
        self._client = client
        if self._client is None:
            self._initialize_client()

    def _initialize_client(self):
        import redis.asyncio as redis

        self._client = redis.from_url(self.redis_url, decode_responses=True)
        logger.info("Redis record store client initialized")

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except Exception as e:
            logger.error(f"Redis GET failed for {key}: {e}")
            raise RecordStoreException(detail="Failed to read record", operation="get", context={"key": key})

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except Exception as e:
            logger.error(f"Redis SET failed for {key}: {e}")
            raise RecordStoreException(detail="Failed to write record", operation="put", context={"key": key})

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except Exception as e:
            logger.error(f"Redis DEL failed for {key}: {e}")
            raise RecordStoreException(detail="Failed to delete record", operation="delete", context={"key": key})

    async def list_keys(self, prefix: str) -> List[str]:
        try:
            keys = [key async for key in self._client.scan_iter(match=f"{prefix}*")]
            return sorted(keys)
        except Exception as e:
            logger.error(f"Redis SCAN failed for prefix {prefix}: {e}")
            raise RecordStoreException(detail="Failed to list records", operation="list", context={"prefix": prefix})

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False


class InMemoryRecordStore(BaseRecordStore):
    """
    In-process record store for tests and single-instance development.
    WARNING: data is lost on restart and not shared between workers.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self.lock = threading.Lock()
        logger.info("In-memory record store initialized")

    def _is_expired(self, expiry: Optional[float]) -> bool:
        return expiry is not None and self.clock() >= expiry

    def _live_value(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if self._is_expired(expiry):
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        with self.lock:
            return self._live_value(key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        with self.lock:
            expiry = self.clock() + ttl_seconds if ttl_seconds else None
            self._data[key] = (value, expiry)

    async def delete(self, key: str) -> None:
        with self.lock:
            self._data.pop(key, None)

    async def list_keys(self, prefix: str) -> List[str]:
        with self.lock:
            candidates = [k for k in list(self._data) if k.startswith(prefix)]
            return sorted(k for k in candidates if self._live_value(k) is not None)

    async def ping(self) -> bool:
        return True


def create_record_store(settings) -> Optional[BaseRecordStore]:
    """Build the configured record store; None when Redis is not configured."""
    if settings.is_memory_backend():
        return InMemoryRecordStore()
    if not settings.redis_url:
        logger.warning("REDIS_URL is not set; metadata storage is unavailable")
        return None
    return RedisRecordStore(settings.redis_url)
