from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class UploadRequest(BaseModel):
    filename: Optional[str] = Field(None, description="Client-side file name")
    size: Optional[int] = Field(None, description="Declared size in bytes")
    name: Optional[str] = Field(None, description="Display name; defaults to filename")
    tags: Optional[Union[str, List[str]]] = Field(None, description="Comma-separated string or list of tags")


class UploadInstructions(BaseModel):
    method: str = "PUT"
    headers: Dict[str, str] = Field(default_factory=lambda: {"Content-Type": "application/pdf"})
    note: str = "Upload the file directly to the presigned URL, then call /upload/complete"


class UploadRequestResponse(BaseModel):
    success: bool = True
    upload_id: str
    presigned_url: str
    expires_in: int
    instructions: UploadInstructions = Field(default_factory=UploadInstructions)


class UploadCompleteRequest(BaseModel):
    upload_id: Optional[str] = Field(None, description="Identifier returned by /upload/request")
    etag: Optional[str] = Field(None, description="ETag reported by the object store after the PUT")


class UploadCompleteResponse(BaseModel):
    success: bool = True
    pdf_id: str
    message: str = "PDF upload completed successfully"
    metadata: Dict[str, Any]


class DirectUploadResponse(BaseModel):
    success: bool = True
    pdfId: str
    message: str = "PDF uploaded successfully"
    metadata: Dict[str, Any]


class PdfListResponse(BaseModel):
    pdfs: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    message: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "PDF deleted successfully"
