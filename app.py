from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.config import Settings, get_settings, tags_metadata

# Enhanced error handling imports
from common.logging import setup_logging, get_logger
from common.middleware import setup_middleware
from common.exceptions import BaseAPIException
from common.responses import create_error_response, create_validation_error_response
from dependencies import init_app_state

logger = get_logger("main")

ROOT_MESSAGE = """PDF Storage Agent Ready

Endpoints:
- POST /validate-key - Validate API key
- POST /upload/request - Request presigned upload URL (up to 200MB)
- POST /upload/complete - Complete presigned upload
- POST /upload - Upload PDF directly (<95MB)
- GET /pdfs - List PDFs (AUTH REQUIRED)
- GET /pdf/{id} - Download PDF (AUTH REQUIRED)
- GET /pdf/{id}/metadata - Get PDF metadata (AUTH REQUIRED)
- DELETE /pdf/{id} - Delete PDF (ADMIN AUTH REQUIRED)

Authentication: Bearer token in Authorization header"""

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "AUTHENTICATION_REQUIRED",
    403: "ACCESS_DENIED",
    404: "RESOURCE_NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "PAYLOAD_TOO_LARGE",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_SERVER_ERROR",
}


async def api_exception_handler(request: Request, exc: BaseAPIException):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"API exception: {exc.error_code}", extra={
        "error_code": exc.error_code,
        "status_code": exc.status_code,
        "context": exc.context,
        "path": str(request.url.path),
        "method": request.method
    })
    return create_error_response(
        error_code=exc.error_code,
        message=exc.detail,
        status_code=exc.status_code,
        context=exc.context or None,
        headers=exc.headers
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return create_error_response(
        error_code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error occurred", extra={
        "error_count": len(exc.errors()),
        "path": str(request.url.path),
        "method": request.method
    })
    validation_errors = [
        {
            "field": ".".join(str(x) for x in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return create_validation_error_response(
        validation_errors=validation_errors,
        message="Request validation failed"
    )


def create_limiter(settings: Settings) -> Limiter:
    """Per-IP request throttle in front of the per-client upload quotas."""
    return Limiter(
        key_func=get_remote_address,
        headers_enabled=True,
        default_limits=[settings.http_rate_limit_default],
        storage_uri=settings.http_rate_limit_storage_uri or "memory://",
        enabled=settings.http_rate_limit_enabled,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    setup_logging(level=settings.log_level, format_type=settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="PDF storage with presigned two-phase uploads, per-client quotas and shared-secret auth",
        openapi_tags=tags_metadata,
    )

    init_app_state(app, settings)

    app.state.limiter = create_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(SlowAPIMiddleware)

    setup_middleware(app)

    @app.get("/",
        summary="Root endpoint",
        description="Plain-text service banner listing the endpoints",
        response_class=PlainTextResponse,
    )
    async def root():
        return ROOT_MESSAGE

    # Import routers
    from api.auth import router as auth_router
    from api.uploads import router as uploads_router
    from api.pdfs import router as pdfs_router
    from api.health import router as health_router

    app.include_router(auth_router)
    app.include_router(uploads_router)
    app.include_router(pdfs_router)
    app.include_router(health_router)

    if settings.is_memory_backend():
        logger.warning("Using in-memory storage; data will not survive a restart")

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
