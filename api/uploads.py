from typing import Any, Optional
from fastapi import APIRouter, File, Form, Request, UploadFile

from auth.decorators import authorize
from auth.models import ClientIdentity
from common.middleware import client_ip
from common.responses import merge_responses
from dependencies import UploadCoordinatorDep
from services.schemas import (
    DirectUploadResponse,
    UploadCompleteRequest,
    UploadCompleteResponse,
    UploadRequest,
    UploadRequestResponse,
)

router = APIRouter(prefix="/upload", tags=["Uploads"])


@router.post("/request",
    response_model=UploadRequestResponse,
    summary="Request a presigned upload URL",
    description="Reserves an upload id and returns a presigned PUT URL for PDFs up to 200MB.",
    responses=merge_responses("unauthorized", "too_large", "rate_limit", "server_error"),
)
@authorize()
async def request_upload(
    request: Request,
    body: Optional[UploadRequest] = None,
    upload_coordinator: UploadCoordinatorDep = None,
    current_client: ClientIdentity = None,
) -> Any:
    body = body or UploadRequest()
    return await upload_coordinator.request_upload(
        current_client,
        filename=body.filename,
        size=body.size,
        name=body.name,
        tags=body.tags,
        ip_address=client_ip(request),
    )


@router.post("/complete",
    response_model=UploadCompleteResponse,
    summary="Complete a presigned upload",
    description="Confirms the blob exists and promotes the pending upload to a stored PDF.",
    responses=merge_responses("unauthorized", "forbidden", "not_found", "server_error"),
)
@authorize()
async def complete_upload(
    body: Optional[UploadCompleteRequest] = None,
    upload_coordinator: UploadCoordinatorDep = None,
    current_client: ClientIdentity = None,
) -> Any:
    body = body or UploadCompleteRequest()
    return await upload_coordinator.complete_upload(current_client, body.upload_id, etag=body.etag)


@router.post("",
    response_model=DirectUploadResponse,
    summary="Upload a PDF directly",
    description="Single-request multipart upload for PDFs up to 95MB.",
    responses=merge_responses("unauthorized", "too_large", "rate_limit", "server_error"),
)
@authorize()
async def upload_pdf(
    request: Request,
    file: Optional[UploadFile] = File(None, description="PDF file"),
    name: Optional[str] = Form(None, description="Display name"),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    upload_coordinator: UploadCoordinatorDep = None,
    current_client: ClientIdentity = None,
) -> Any:
    return await upload_coordinator.upload_direct(
        current_client,
        file,
        name=name,
        tags=tags,
        ip_address=client_ip(request),
    )
