"""
Read, list and delete operations over stored PDFs.
"""

from typing import Optional

from adapters.blob_store import BaseBlobStore, BlobObject
from auth.models import ClientIdentity
from common.exceptions import (
    BaseAPIException,
    ResourceNotFoundException,
    StorageException,
    StorageNotConfiguredException,
)
from common.logging import get_logger, log_business_event
from repositories.pdf_record_repository import PdfRecordRepository
from services.schemas import DeleteResponse, PdfListResponse

logger = get_logger("library_service")

EMPTY_LIBRARY_MESSAGE = "Your PDF library is currently empty. Upload some PDFs to get started!"
NOT_CONFIGURED_MESSAGE = "PDF storage is not configured yet. No PDFs available."
UNAVAILABLE_MESSAGE = "Unable to load PDF library at this time. This might be a configuration issue."
DEFAULT_DISPOSITION = "attachment"


def _pdf_not_found(pdf_id: str) -> ResourceNotFoundException:
    return ResourceNotFoundException(resource_type="PDF", resource_id=pdf_id, detail="PDF not found")


class LibraryService:

    def __init__(self, blob_store: Optional[BaseBlobStore], pdf_repository: PdfRecordRepository):
        self.blob_store = blob_store
        self.pdf_repository = pdf_repository

    def _require_blob_store(self) -> BaseBlobStore:
        if self.blob_store is None:
            raise StorageNotConfiguredException("Blob store")
        return self.blob_store

    async def list_pdfs(self, identity: ClientIdentity) -> PdfListResponse:
        """
        List every stored PDF, newest first. This endpoint feeds the UI, so a
        missing or failing store yields an empty 200 with an explanation.
        """
        if not self.pdf_repository.is_configured:
            logger.info("Record store not configured - returning empty PDF list")
            return PdfListResponse(message=NOT_CONFIGURED_MESSAGE)

        try:
            records = await self.pdf_repository.list_newest_first()
        except Exception as e:
            logger.error(f"PDF listing failed: {e}")
            return PdfListResponse(message=UNAVAILABLE_MESSAGE)

        pdfs = [record.to_public_dict() for record in records]
        return PdfListResponse(
            pdfs=pdfs,
            count=len(pdfs),
            message=None if pdfs else EMPTY_LIBRARY_MESSAGE,
        )

    async def get_pdf(self, identity: ClientIdentity, pdf_id: str) -> BlobObject:
        blob_store = self._require_blob_store()
        blob = await blob_store.get(blob_store.blob_key(pdf_id))
        if blob is None:
            raise _pdf_not_found(pdf_id)
        if not blob.info.content_disposition:
            blob.info.content_disposition = DEFAULT_DISPOSITION
        return blob

    async def get_metadata(self, identity: ClientIdentity, pdf_id: str) -> dict:
        record = await self.pdf_repository.get_by_id(pdf_id)
        if record is None:
            raise _pdf_not_found(pdf_id)
        return record.to_public_dict()

    async def delete_pdf(self, identity: ClientIdentity, pdf_id: str) -> DeleteResponse:
        """Delete the blob, then its metadata. Deleting an unknown id succeeds."""
        blob_store = self._require_blob_store()
        try:
            await blob_store.delete(blob_store.blob_key(pdf_id))
            await self.pdf_repository.delete(pdf_id)
        except BaseAPIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete PDF {pdf_id}: {e}", exc_info=True)
            raise StorageException(detail="Failed to delete PDF", operation="delete")

        log_business_event(
            event_type="PDF_DELETED",
            entity_type="pdf",
            entity_id=pdf_id,
            action="delete",
            client_id=identity.id,
        )
        return DeleteResponse()


def create_library_service(blob_store: Optional[BaseBlobStore], pdf_repository: PdfRecordRepository) -> LibraryService:
    """Factory function to create LibraryService with dependencies."""
    return LibraryService(blob_store, pdf_repository)
