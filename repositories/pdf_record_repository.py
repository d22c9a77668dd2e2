"""
PdfRecord repository backed by the record store (`pdf:` namespace).
"""

from typing import Any, Dict, List, Optional

from adapters.record_store import BaseRecordStore
from entities.pdf_record import PdfRecord
from repositories.base import KeyValueRepository


class PdfRecordRepository(KeyValueRepository[PdfRecord]):
    """Final PDF metadata; records persist until explicitly deleted."""

    def __init__(self, record_store: Optional[BaseRecordStore], namespace: str = "pdf:"):
        super().__init__(record_store, namespace)

    def _entity_id(self, entity: PdfRecord) -> str:
        return entity.id

    def _serialize(self, entity: PdfRecord) -> Dict[str, Any]:
        return entity.to_dict()

    def _deserialize(self, data: Dict[str, Any]) -> PdfRecord:
        return PdfRecord.from_dict(data)

    async def list_newest_first(self) -> List[PdfRecord]:
        records = await self.list()
        return sorted(records, key=lambda r: r.upload_date, reverse=True)
