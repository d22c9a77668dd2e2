"""
Centralized exception classes for the PDF storage API.
Provides a hierarchy of custom exceptions with proper error codes and messages.
"""

from typing import Optional, Dict, Any
from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception class for all PDF storage API errors."""

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}


# Authentication & Authorization Exceptions
class AuthenticationException(BaseAPIException):
    """Authentication-related errors."""

    def __init__(
        self,
        detail: str = "Authentication required",
        error_code: str = "AUTH_FAILED",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
            error_code=error_code,
            context=context
        )


class MissingCredentialsException(AuthenticationException):
    """Missing or malformed Authorization header."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            detail="Authentication required",
            error_code="AUTH_FAILED",
            context=context
        )
        self.reason = "missing_credentials"


class InvalidAPIKeyException(AuthenticationException):
    """Credential did not match any secret accepted by the route."""

    def __init__(self, reason: str = "invalid_api_key", context: Optional[Dict[str, Any]] = None):
        super().__init__(
            detail="Authentication required",
            error_code="AUTH_FAILED",
            context=context
        )
        self.reason = reason


class AuthorizationException(BaseAPIException):
    """Authorization-related errors."""

    def __init__(
        self,
        detail: str = "Access denied",
        error_code: str = "ACCESS_DENIED",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=error_code,
            context=context
        )


class UploadOwnershipException(AuthorizationException):
    """Caller tried to complete an upload requested by another client."""

    def __init__(
        self,
        upload_id: str,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail="Unauthorized to complete this upload",
            error_code="UPLOAD_OWNERSHIP_MISMATCH",
            context=context or {"upload_id": upload_id}
        )


# Validation Exceptions
class ValidationException(BaseAPIException):
    """Request validation errors."""

    def __init__(
        self,
        detail: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        error_code: str = "VALIDATION_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            context=context or {"field": field, "value": value}
        )


class MissingFieldException(ValidationException):
    """One or more required request fields are absent."""

    def __init__(
        self,
        fields: list,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=f"Missing required field{'s' if len(fields) > 1 else ''}: {' and '.join(fields)}",
            error_code="MISSING_FIELDS",
            context=context or {"fields": fields}
        )


class InvalidFileException(ValidationException):
    """Invalid file upload errors."""

    def __init__(
        self,
        detail: str,
        filename: Optional[str] = None,
        file_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            error_code="INVALID_FILE",
            context=context or {"filename": filename, "file_type": file_type}
        )


class PayloadTooLargeException(BaseAPIException):
    """Declared or actual upload size is above the allowed ceiling."""

    def __init__(
        self,
        detail: str,
        size: int,
        max_size: int,
        recommendation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = {"size": size, "max_size": max_size}
        if recommendation:
            ctx["recommendation"] = recommendation
        super().__init__(
            detail=detail,
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            error_code="PAYLOAD_TOO_LARGE",
            context=context or ctx
        )


# Resource Exceptions
class ResourceException(BaseAPIException):
    """Resource-related errors."""

    def __init__(
        self,
        detail: str,
        status_code: int = status.HTTP_404_NOT_FOUND,
        error_code: str = "RESOURCE_ERROR",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status_code,
            error_code=error_code,
            context=context or {"resource_type": resource_type, "resource_id": resource_id}
        )


class ResourceNotFoundException(ResourceException):
    """Resource not found errors."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail or f"{resource_type} with ID '{resource_id}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
            resource_type=resource_type,
            resource_id=resource_id,
            context=context
        )


class UploadNotFoundException(ResourceNotFoundException):
    """Pending upload is unknown or its TTL has elapsed."""

    def __init__(self, upload_id: str):
        super().__init__(
            resource_type="PendingUpload",
            resource_id=upload_id,
            detail="Upload not found or expired"
        )
        self.error_code = "UPLOAD_NOT_FOUND"


class BlobNotFoundException(ResourceNotFoundException):
    """Blob is missing from the object store; the caller may retry the transfer."""

    def __init__(self, blob_key: str, detail: Optional[str] = None):
        super().__init__(
            resource_type="Blob",
            resource_id=blob_key,
            detail=detail or "File not found in storage. Please retry the upload."
        )
        self.error_code = "BLOB_NOT_FOUND"


# Storage Exceptions
class StorageException(BaseAPIException):
    """Backend storage errors; never retried by the service."""

    def __init__(
        self,
        detail: str,
        store: str = "storage",
        operation: Optional[str] = None,
        error_code: str = "STORAGE_ERROR",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=error_code,
            context=context or {"store": store, "operation": operation}
        )


class BlobStoreException(StorageException):
    """Object store errors."""

    def __init__(
        self,
        detail: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            store="blob_store",
            operation=operation,
            error_code="BLOB_STORE_ERROR",
            context=context
        )


class RecordStoreException(StorageException):
    """Key/value record store errors."""

    def __init__(
        self,
        detail: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail=detail,
            store="record_store",
            operation=operation,
            error_code="RECORD_STORE_ERROR",
            context=context
        )


class StorageNotConfiguredException(StorageException):
    """A required store has no configuration."""

    def __init__(self, store: str):
        super().__init__(
            detail=f"{store} is not configured",
            store=store,
            error_code="STORAGE_NOT_CONFIGURED"
        )


# Rate Limiting Exceptions
class RateLimitException(BaseAPIException):
    """Rate limiting errors."""

    def __init__(
        self,
        detail: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(
            detail=detail,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers=headers,
            error_code="RATE_LIMIT_EXCEEDED",
            context=context or {"retry_after": retry_after}
        )
        self.retry_after = retry_after
