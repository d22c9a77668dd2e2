"""
Standardized API response formats for consistent error handling.
"""

import json
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from uuid import UUID
from pydantic import BaseModel
from fastapi import status
from fastapi.responses import JSONResponse

from common.logging import request_id_var


class ErrorDetail(BaseModel):
    """Detailed error information."""
    code: str
    message: str
    field: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


class APIResponse(BaseModel):
    """Standard API response format."""
    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorDetail] = None
    request_id: Optional[str] = None
    timestamp: str


class ValidationErrorResponse(BaseModel):
    """Validation error response format."""
    success: bool = False
    error: ErrorDetail
    validation_errors: List[Dict[str, Any]]
    request_id: Optional[str] = None
    timestamp: str


def _ensure_jsonable(value: Any) -> Any:
    """Recursively convert common non-JSON-serializable types to JSON-safe values.

    Handles dicts, lists/tuples/sets, datetime, UUID, bytes and Pydantic models.
    Fallback converts unknown objects to str().
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value

    if isinstance(value, BaseModel):
        return _ensure_jsonable(value.model_dump(exclude_none=True))

    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"

    if isinstance(value, dict):
        return {k: _ensure_jsonable(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [_ensure_jsonable(v) for v in value]

    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def create_error_response(
    error_code: str,
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    field: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """Create an error API response."""
    error_detail = ErrorDetail(
        code=error_code,
        message=message,
        field=field,
        context=context
    )

    response_data = APIResponse(
        success=False,
        error=error_detail,
        request_id=request_id_var.get(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )

    content = _ensure_jsonable(response_data.model_dump(exclude_none=True))
    return JSONResponse(content=content, status_code=status_code, headers=headers)


def create_validation_error_response(
    validation_errors: List[Dict[str, Any]],
    message: str = "Validation failed"
) -> JSONResponse:
    """Create a validation error response."""
    error_detail = ErrorDetail(
        code="VALIDATION_ERROR",
        message=message
    )

    response_data = ValidationErrorResponse(
        error=error_detail,
        validation_errors=_ensure_jsonable(validation_errors),
        request_id=request_id_var.get(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )

    content = _ensure_jsonable(response_data.model_dump(exclude_none=True))
    return JSONResponse(content=content, status_code=status.HTTP_400_BAD_REQUEST)


def _error_example(code: str, message: str) -> Dict[str, Any]:
    return {
        "application/json": {
            "example": {
                "success": False,
                "error": {"code": code, "message": message},
                "request_id": "550e8400-e29b-41d4-a716-446655440000",
                "timestamp": "2024-01-01T10:00:00Z"
            }
        }
    }


# Common response templates for OpenAPI docs
COMMON_RESPONSES = {
    "unauthorized": {
        401: {"description": "Authentication required", "content": _error_example("AUTH_FAILED", "Authentication required")}
    },
    "forbidden": {
        403: {"description": "Access denied", "content": _error_example("ACCESS_DENIED", "Access denied")}
    },
    "not_found": {
        404: {"description": "Resource not found", "content": _error_example("RESOURCE_NOT_FOUND", "PDF not found")}
    },
    "too_large": {
        413: {"description": "Payload too large", "content": _error_example("PAYLOAD_TOO_LARGE", "File too large")}
    },
    "rate_limit": {
        429: {"description": "Rate limit exceeded", "content": _error_example("RATE_LIMIT_EXCEEDED", "Hourly upload limit of 10 exceeded")}
    },
    "server_error": {
        500: {"description": "Storage error", "content": _error_example("STORAGE_ERROR", "Failed to upload PDF")}
    },
}


def merge_responses(*names: str) -> Dict[int, Dict[str, Any]]:
    """Combine named COMMON_RESPONSES entries for a route's `responses=`."""
    merged: Dict[int, Dict[str, Any]] = {}
    for name in names:
        merged.update(COMMON_RESPONSES[name])
    return merged
