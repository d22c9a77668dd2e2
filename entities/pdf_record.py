"""
PdfRecord and PendingUpload entity models for the domain layer.

Both are stored as camelCase JSON documents in the record store; the Python
attributes stay snake_case.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from common.validation import PDF_CONTENT_TYPE

PENDING_STATUS = "pending"
LARGE_PDF_PREVIEW = "Large PDF - text extraction pending"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_tags(data: Dict[str, Any]) -> Dict[str, Any]:
    tags = data.get("tags")
    if tags is None:
        data["tags"] = []
    elif isinstance(tags, str):
        data["tags"] = [t.strip() for t in tags.split(",") if t.strip()]
    elif not isinstance(tags, list):
        data["tags"] = [tags]
    return data


class PdfRecord(BaseModel):
    """Final metadata for a stored PDF. `id` is also the blob key suffix."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    original_name: str
    upload_date: datetime = Field(default_factory=_utcnow)
    size: int
    tags: List[str] = Field(default_factory=list)
    text_preview: str = ""
    content_type: str = PDF_CONTENT_TYPE
    uploaded_by: Optional[str] = None
    etag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_public_dict(self) -> Dict[str, Any]:
        """Serialized form safe to return to callers (no uploader identity)."""
        data = self.to_dict()
        data.pop("uploadedBy", None)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PdfRecord":
        return cls.model_validate(_normalize_tags(dict(data)))


class PendingUpload(BaseModel):
    """Upload announced through /upload/request and not yet completed."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    upload_id: str
    original_name: str
    filename: str
    size: int
    tags: List[str] = Field(default_factory=list)
    uploaded_by: str
    status: str = PENDING_STATUS
    created_at: datetime = Field(default_factory=_utcnow)
    expires_at: datetime

    @classmethod
    def create(
        cls,
        upload_id: str,
        filename: str,
        size: int,
        uploaded_by: str,
        ttl_seconds: int,
        name: Optional[str] = None,
        tags: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> "PendingUpload":
        created_at = now or _utcnow()
        return cls(
            upload_id=upload_id,
            original_name=name or filename,
            filename=filename,
            size=size,
            tags=tags or [],
            uploaded_by=uploaded_by,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=ttl_seconds),
        )

    def is_owned_by(self, client_id: str) -> bool:
        return self.uploaded_by == client_id

    def to_pdf_record(
        self,
        blob_size: int,
        etag: Optional[str] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> PdfRecord:
        """Promote to a final record using the size confirmed by the blob store."""
        return PdfRecord(
            id=self.upload_id,
            original_name=self.original_name,
            upload_date=uploaded_at or _utcnow(),
            size=blob_size,
            tags=list(self.tags),
            text_preview=LARGE_PDF_PREVIEW,
            content_type=PDF_CONTENT_TYPE,
            uploaded_by=self.uploaded_by,
            etag=etag,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingUpload":
        return cls.model_validate(_normalize_tags(dict(data)))
