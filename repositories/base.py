"""
Base repository interface and the key/value implementation shared by every
repository in the service.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar

from adapters.record_store import BaseRecordStore
from common.exceptions import StorageNotConfiguredException
from common.logging import get_logger

logger = get_logger("repository")

# Generic type for entity models
T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Abstract base repository interface defining the operations the services need.
    """

    @abstractmethod
    async def save(self, entity: T) -> T:
        """Create or replace an entity."""
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """Retrieve an entity by its ID."""
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> None:
        """Delete an entity by its ID."""
        pass

    @abstractmethod
    async def list(self) -> List[T]:
        """List all entities."""
        pass


class KeyValueRepository(BaseRepository[T], ABC):
    """
    Repository over one namespace of the record store. Each namespace is a key
    prefix, so several repositories can share a physical store without colliding.
    """

    def __init__(self, record_store: Optional[BaseRecordStore], namespace: str, ttl_seconds: Optional[int] = None):
        self.store = record_store
        self.namespace = namespace if namespace.endswith(":") else f"{namespace}:"
        self.ttl_seconds = ttl_seconds

    @property
    def is_configured(self) -> bool:
        return self.store is not None

    def _require_store(self) -> BaseRecordStore:
        if self.store is None:
            raise StorageNotConfiguredException("Record store")
        return self.store

    def _key(self, entity_id: str) -> str:
        return f"{self.namespace}{entity_id}"

    @abstractmethod
    def _entity_id(self, entity: T) -> str:
        pass

    @abstractmethod
    def _serialize(self, entity: T) -> Dict[str, Any]:
        pass

    @abstractmethod
    def _deserialize(self, data: Dict[str, Any]) -> T:
        pass

    def _decode(self, key: str, raw: Optional[str]) -> Optional[T]:
        """Parse a stored document; corrupt documents are logged and treated as absent."""
        if raw is None:
            return None
        try:
            return self._deserialize(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Skipping unreadable record {key}: {e}")
            return None

    async def save(self, entity: T) -> T:
        store = self._require_store()
        payload = json.dumps(self._serialize(entity), separators=(",", ":"))
        await store.put(self._key(self._entity_id(entity)), payload, ttl_seconds=self.ttl_seconds)
        return entity

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        store = self._require_store()
        key = self._key(entity_id)
        return self._decode(key, await store.get(key))

    async def delete(self, entity_id: str) -> None:
        store = self._require_store()
        await store.delete(self._key(entity_id))

    async def list(self) -> List[T]:
        store = self._require_store()
        entities = []
        for key in await store.list_keys(self.namespace):
            entity = self._decode(key, await store.get(key))
            if entity is not None:
                entities.append(entity)
        return entities
