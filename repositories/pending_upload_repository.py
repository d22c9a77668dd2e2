"""
PendingUpload repository (`pending:` namespace). Every write carries the
presigned-URL TTL, so abandoned uploads are reclaimed by the store.
"""

from typing import Any, Dict, Optional

from adapters.record_store import BaseRecordStore
from entities.pdf_record import PendingUpload
from repositories.base import KeyValueRepository


class PendingUploadRepository(KeyValueRepository[PendingUpload]):

    def __init__(self, record_store: Optional[BaseRecordStore], ttl_seconds: int = 3600, namespace: str = "pending:"):
        super().__init__(record_store, namespace, ttl_seconds=ttl_seconds)

    def _entity_id(self, entity: PendingUpload) -> str:
        return entity.upload_id

    def _serialize(self, entity: PendingUpload) -> Dict[str, Any]:
        return entity.to_dict()

    def _deserialize(self, data: Dict[str, Any]) -> PendingUpload:
        return PendingUpload.from_dict(data)
