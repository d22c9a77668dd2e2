"""
Upload orchestration.

Two protocols are supported:

* Two-phase: `request_upload` issues a presigned PUT URL and stores a pending
  record with the same TTL; the client transfers the bytes straight to the
  blob store and then calls `complete_upload`, which promotes the pending
  record to a final PdfRecord once the blob is confirmed.
* Direct: `upload_direct` reads the file from the request itself in bounded
  chunks and writes the blob and final record in one go, under a lower size
  ceiling.

Store failures surface as 500-class errors and are never retried here.
"""

import time
import uuid
from typing import Callable, Optional, Sequence, Union

from fastapi import UploadFile

from adapters.blob_store import BaseBlobStore
from auth.models import ClientIdentity
from common.exceptions import (
    BaseAPIException,
    BlobNotFoundException,
    StorageException,
    StorageNotConfiguredException,
    UploadNotFoundException,
    UploadOwnershipException,
)
from common.logging import get_logger, log_business_event, log_performance, log_security_event
from common.validation import (
    PDF_CONTENT_TYPE,
    parse_tags,
    read_upload,
    require_fields,
    validate_declared_size,
    validate_direct_upload_size,
    validate_pdf_content_type,
)
from config.config import Settings
from entities.pdf_record import PdfRecord, PendingUpload
from repositories.pdf_record_repository import PdfRecordRepository
from repositories.pending_upload_repository import PendingUploadRepository
from services.rate_limiter import RateLimiter
from services.schemas import (
    DirectUploadResponse,
    UploadCompleteResponse,
    UploadRequestResponse,
)
from services.text_preview import extract_text_preview

logger = get_logger("upload_service")

TagsInput = Union[str, Sequence[str], None]


def _new_id() -> str:
    return str(uuid.uuid4())


class UploadCoordinator:

    def __init__(
        self,
        blob_store: Optional[BaseBlobStore],
        pending_repository: PendingUploadRepository,
        pdf_repository: PdfRecordRepository,
        rate_limiter: RateLimiter,
        settings: Settings,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.blob_store = blob_store
        self.pending_repository = pending_repository
        self.pdf_repository = pdf_repository
        self.rate_limiter = rate_limiter
        self.settings = settings
        self.id_factory = id_factory

    def _require_blob_store(self) -> BaseBlobStore:
        if self.blob_store is None:
            raise StorageNotConfiguredException("Blob store")
        return self.blob_store

    async def request_upload(
        self,
        identity: ClientIdentity,
        filename: Optional[str],
        size: Optional[int],
        name: Optional[str] = None,
        tags: TagsInput = None,
        ip_address: Optional[str] = None,
    ) -> UploadRequestResponse:
        """Phase one: reserve an id, hand out a presigned URL and remember the pending upload."""
        await self.rate_limiter.enforce(identity.id, ip_address=ip_address)

        require_fields(filename=filename, size=size)
        validate_declared_size(size, self.settings.max_presigned_upload_bytes)

        blob_store = self._require_blob_store()
        expires_in = self.settings.presigned_url_expiry_seconds
        upload_id = self.id_factory()

        try:
            presigned_url = await blob_store.create_presigned_upload_url(
                blob_store.blob_key(upload_id), PDF_CONTENT_TYPE, expires_in
            )
            pending = PendingUpload.create(
                upload_id=upload_id,
                filename=filename,
                size=size,
                uploaded_by=identity.id,
                ttl_seconds=expires_in,
                name=name,
                tags=parse_tags(tags),
            )
            await self.pending_repository.save(pending)
        except BaseAPIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create upload request: {e}", exc_info=True)
            raise StorageException(detail="Failed to create upload request", operation="request_upload")

        await self.rate_limiter.record_usage(identity.id)

        log_business_event(
            event_type="UPLOAD_REQUESTED",
            entity_type="pending_upload",
            entity_id=upload_id,
            action="create",
            client_id=identity.id,
            details={"size": size},
        )

        return UploadRequestResponse(
            upload_id=upload_id,
            presigned_url=presigned_url,
            expires_in=expires_in,
        )

    async def complete_upload(
        self,
        identity: ClientIdentity,
        upload_id: Optional[str],
        etag: Optional[str] = None,
    ) -> UploadCompleteResponse:
        """
        Phase two. The final record is written before the pending record is
        deleted, so a crash in between leaves only an orphan that expires.
        """
        require_fields(upload_id=upload_id)

        pending = await self.pending_repository.get_by_id(upload_id)
        if pending is None:
            raise UploadNotFoundException(upload_id)

        if not pending.is_owned_by(identity.id):
            log_security_event(
                "upload_ownership_mismatch",
                client_id=identity.id,
                details={"upload_id": upload_id},
            )
            raise UploadOwnershipException(upload_id)

        blob_store = self._require_blob_store()
        blob_key = blob_store.blob_key(upload_id)
        blob = await blob_store.head(blob_key)
        if blob is None:
            raise BlobNotFoundException(blob_key)

        record = pending.to_pdf_record(blob_size=blob.size, etag=etag or blob.etag)

        try:
            await self.pdf_repository.save(record)
            await self.pending_repository.delete(upload_id)
        except BaseAPIException:
            raise
        except Exception as e:
            logger.error(f"Failed to complete upload {upload_id}: {e}", exc_info=True)
            raise StorageException(detail="Failed to complete upload", operation="complete_upload")

        log_business_event(
            event_type="UPLOAD_COMPLETED",
            entity_type="pdf",
            entity_id=record.id,
            action="create",
            client_id=identity.id,
            details={"size": record.size},
        )

        return UploadCompleteResponse(pdf_id=record.id, metadata=record.to_public_dict())

    async def upload_direct(
        self,
        identity: ClientIdentity,
        file: Optional[UploadFile],
        name: Optional[str] = None,
        tags: TagsInput = None,
        ip_address: Optional[str] = None,
    ) -> DirectUploadResponse:
        """
        Single-shot upload: the bytes arrive with the request. The content type
        and any size the client declared are checked before the file is read.
        """
        await self.rate_limiter.enforce(identity.id, ip_address=ip_address)

        filename = file.filename if file is not None else None
        validate_pdf_content_type(file.content_type if file is not None else None, filename)

        max_size = self.settings.max_direct_upload_bytes
        two_phase_max_size = self.settings.max_presigned_upload_bytes
        if file.size is not None:
            validate_direct_upload_size(file.size, max_size, two_phase_max_size=two_phase_max_size)
        data = await read_upload(file, max_size)
        validate_direct_upload_size(len(data), max_size, two_phase_max_size=two_phase_max_size)

        blob_store = self._require_blob_store()
        pdf_id = self.id_factory()
        file_name = name or filename or f"pdf_{pdf_id}.pdf"

        try:
            started = time.perf_counter()
            await blob_store.put(
                blob_store.blob_key(pdf_id),
                data,
                content_type=PDF_CONTENT_TYPE,
                content_disposition=f'attachment; filename="{file_name}"',
            )
            log_performance("blob_put", round((time.perf_counter() - started) * 1000, 2), size=len(data))
            record = PdfRecord(
                id=pdf_id,
                original_name=file_name,
                size=len(data),
                tags=parse_tags(tags),
                text_preview=extract_text_preview(data),
                content_type=PDF_CONTENT_TYPE,
                uploaded_by=identity.id,
            )
            await self.pdf_repository.save(record)
        except BaseAPIException:
            raise
        except Exception as e:
            logger.error(f"Failed to upload PDF: {e}", exc_info=True)
            raise StorageException(detail="Failed to upload PDF", operation="upload_direct")

        await self.rate_limiter.record_usage(identity.id)

        log_business_event(
            event_type="PDF_UPLOADED",
            entity_type="pdf",
            entity_id=pdf_id,
            action="create",
            client_id=identity.id,
            details={"size": record.size},
        )

        return DirectUploadResponse(pdfId=pdf_id, metadata=record.to_public_dict())


def create_upload_coordinator(
    blob_store: Optional[BaseBlobStore],
    pending_repository: PendingUploadRepository,
    pdf_repository: PdfRecordRepository,
    rate_limiter: RateLimiter,
    settings: Settings,
) -> UploadCoordinator:
    """Factory function to create UploadCoordinator with dependencies."""
    return UploadCoordinator(blob_store, pending_repository, pdf_repository, rate_limiter, settings)
