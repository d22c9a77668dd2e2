from typing import Any
from fastapi import APIRouter, Path
from fastapi.responses import StreamingResponse

from auth.decorators import authorize
from auth.models import ClientIdentity
from common.responses import merge_responses
from common.validation import PDF_CONTENT_TYPE
from dependencies import LibraryServiceDep
from services.schemas import DeleteResponse, PdfListResponse

router = APIRouter(tags=["Library"])


@router.get("/pdfs",
    response_model=PdfListResponse,
    response_model_exclude_none=True,
    summary="List stored PDFs",
    description="Returns every stored PDF, newest first. Degrades to an empty list when storage is unavailable.",
    responses=merge_responses("unauthorized"),
)
@authorize()
async def list_pdfs(
    library_service: LibraryServiceDep = None,
    current_client: ClientIdentity = None,
) -> Any:
    return await library_service.list_pdfs(current_client)


@router.get("/pdf/{pdf_id}/metadata",
    summary="Get PDF metadata",
    responses=merge_responses("unauthorized", "not_found"),
)
@authorize()
async def get_pdf_metadata(
    pdf_id: str = Path(..., description="PDF id"),
    library_service: LibraryServiceDep = None,
    current_client: ClientIdentity = None,
) -> Any:
    return await library_service.get_metadata(current_client, pdf_id)


@router.get("/pdf/{pdf_id}",
    summary="Download a PDF",
    response_class=StreamingResponse,
    responses={200: {"content": {PDF_CONTENT_TYPE: {}}}, **merge_responses("unauthorized", "not_found")},
)
@authorize()
async def download_pdf(
    pdf_id: str = Path(..., description="PDF id"),
    library_service: LibraryServiceDep = None,
    current_client: ClientIdentity = None,
) -> StreamingResponse:
    blob = await library_service.get_pdf(current_client, pdf_id)
    return StreamingResponse(
        blob.iter_chunks(),
        media_type=PDF_CONTENT_TYPE,
        headers={"Content-Disposition": blob.info.content_disposition},
    )


@router.delete("/pdf/{pdf_id}",
    response_model=DeleteResponse,
    summary="Delete a PDF",
    description="Removes the stored file and its metadata. Requires the admin key unless DELETE_REQUIRES_ADMIN is false.",
    responses=merge_responses("unauthorized", "server_error"),
)
@authorize(admin_setting="delete_requires_admin")
async def delete_pdf(
    pdf_id: str = Path(..., description="PDF id"),
    library_service: LibraryServiceDep = None,
    current_client: ClientIdentity = None,
) -> Any:
    return await library_service.delete_pdf(current_client, pdf_id)
