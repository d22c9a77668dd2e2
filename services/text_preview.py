import re

from common.logging import get_logger

logger = get_logger("text_preview")

PREVIEW_SAMPLE_BYTES = 1000
PREVIEW_MAX_CHARS = 200
MIN_USEFUL_CHARS = 10

NO_TEXT_PREVIEW = "PDF content detected but text extraction requires additional processing"
FAILED_PREVIEW = "Text extraction failed - PDF uploaded successfully"

_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


def extract_text_preview(data: bytes) -> str:
    """
    Best-effort preview from the head of a PDF: printable ASCII from the first
    kilobyte. Never raises; failures collapse to a fixed message.
    """
    try:
        sample = bytes(data[:PREVIEW_SAMPLE_BYTES]).decode("utf-8", errors="ignore")
        text = _NON_PRINTABLE.sub("", sample).strip()
        if len(text) > MIN_USEFUL_CHARS:
            return text[:PREVIEW_MAX_CHARS] + "..."
        return NO_TEXT_PREVIEW
    except Exception as e:
        logger.warning(f"Text preview extraction failed: {e}")
        return FAILED_PREVIEW
