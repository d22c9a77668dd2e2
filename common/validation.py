"""
Request validation utilities.
"""

from typing import List, Optional, Sequence, Union

from common.exceptions import (
    InvalidFileException,
    MissingFieldException,
    PayloadTooLargeException,
    ValidationException,
)
from common.logging import get_logger

logger = get_logger("validation")

PDF_CONTENT_TYPE = "application/pdf"
MB = 1024 * 1024


def format_megabytes(size_bytes: int) -> str:
    """Render a byte ceiling the way error messages quote it (e.g. '95MB')."""
    value = size_bytes / MB
    return f"{int(value)}MB" if value == int(value) else f"{value:.1f}MB"


def require_fields(**values) -> None:
    """Raise MissingFieldException listing every falsy field, in argument order."""
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise MissingFieldException(fields=missing)


def validate_declared_size(size: int, max_size: int) -> int:
    """Validate a client-declared upload size against the two-phase ceiling."""
    if size < 0:
        raise ValidationException(
            detail="File size must be a positive number of bytes",
            field="size",
            value=size
        )

    if size > max_size:
        raise PayloadTooLargeException(
            detail=f"PDF must be smaller than {format_megabytes(max_size)}",
            size=size,
            max_size=max_size
        )

    return size


def validate_pdf_content_type(content_type: Optional[str], filename: Optional[str] = None) -> None:
    """Only the PDF media type is accepted for direct uploads."""
    if content_type != PDF_CONTENT_TYPE:
        logger.warning(f"Rejected upload with content type {content_type!r}")
        raise InvalidFileException(
            detail="Please upload a valid PDF file",
            filename=filename,
            file_type=content_type
        )


def validate_direct_upload_size(size: int, max_size: int, two_phase_max_size: int = 200 * MB) -> None:
    """Direct uploads stream through the request itself, so they get a lower ceiling."""
    if size > max_size:
        raise PayloadTooLargeException(
            detail=(
                f"Files larger than {format_megabytes(max_size)} must use the presigned upload method. "
                "Use /upload/request instead."
            ),
            size=size,
            max_size=max_size,
            recommendation=f"Use /upload/request endpoint for files up to {format_megabytes(two_phase_max_size)}",
        )


def parse_tags(tags: Union[str, Sequence[str], None]) -> List[str]:
    """Accept comma-separated text or a list; keep order, drop blanks."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [str(tag).strip() for tag in tags if str(tag).strip()]


UPLOAD_CHUNK_SIZE = MB


async def read_upload(upload_file, max_size: int, chunk_size: int = UPLOAD_CHUNK_SIZE) -> bytes:
    """
    Read an uploaded file in chunks, stopping one byte past `max_size`.

    The result is at most `max_size + 1` bytes long, which is enough for
    `validate_direct_upload_size` to reject an oversized file without the
    rest of it ever being read.
    """
    buffer = bytearray()
    while len(buffer) <= max_size:
        chunk = await upload_file.read(min(chunk_size, max_size + 1 - len(buffer)))
        if not chunk:
            break
        buffer.extend(chunk)
    return bytes(buffer)
