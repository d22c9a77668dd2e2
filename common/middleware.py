"""
Middleware for error handling, logging, and request tracking.
"""
import time

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from common.logging import (
    RequestContextLogger,
    log_api_request,
    log_error,
    log_security_event,
)
from common.responses import create_error_response

REQUEST_ID_HEADER = "X-Request-ID"


def client_ip(request: Request):
    return request.client.host if request.client else None


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation id to every request and logs its outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER)
        started = time.perf_counter()

        with RequestContextLogger(request_id=request_id) as ctx:
            request.state.request_id = ctx.request_id
            response = await call_next(request)
            duration_ms = (time.perf_counter() - started) * 1000

            log_api_request(
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_id=getattr(request.state, "client_id", None),
                ip_address=client_ip(request),
                user_agent=request.headers.get("user-agent"),
            )

        response.headers[REQUEST_ID_HEADER] = ctx.request_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for errors the exception handlers did not map."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return self._handle_unexpected_error(e, request)

    def _handle_unexpected_error(self, error: Exception, request: Request) -> JSONResponse:
        log_error(
            error,
            context={"path": str(request.url.path), "method": request.method},
            client_id=getattr(request.state, "client_id", None)
        )

        # Don't expose internal error details
        return create_error_response(
            error_code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred",
            status_code=500
        )


class SecurityMiddleware(BaseHTTPMiddleware):
    """Middleware for security headers and basic request checks."""

    SUSPICIOUS_PATTERNS = (
        "../", "..\\", "<script", "javascript:", "vbscript:",
        "onload=", "onerror=", "eval(", "document.cookie",
    )

    def __init__(self, app: ASGIApp, max_request_bytes: int = 200 * 1024 * 1024):
        super().__init__(app)
        self.max_request_bytes = max_request_bytes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        self._check_request_security(request)

        response = await call_next(request)

        path = str(request.url.path)
        if path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi"):
            self._add_basic_security_headers(response)
        else:
            self._add_security_headers(response)

        return response

    def _check_request_security(self, request: Request) -> None:
        """Log suspicious requests; never blocks."""
        path = str(request.url.path)
        for pattern in self.SUSPICIOUS_PATTERNS:
            if pattern in path.lower():
                log_security_event(
                    event_type="SUSPICIOUS_PATH",
                    ip_address=client_ip(request),
                    details={"path": path, "pattern": pattern}
                )
                break

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_request_bytes:
            log_security_event(
                event_type="LARGE_REQUEST",
                ip_address=client_ip(request),
                details={"content_length": content_length}
            )

    def _add_security_headers(self, response: Response) -> None:
        security_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
            "Referrer-Policy": "strict-origin-when-cross-origin",
        }

        for header, value in security_headers.items():
            response.headers[header] = value

    def _add_basic_security_headers(self, response: Response) -> None:
        """Lighter headers for documentation endpoints."""
        basic_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "SAMEORIGIN",
            "Referrer-Policy": "strict-origin-when-cross-origin"
        }

        for header, value in basic_headers.items():
            response.headers[header] = value


def setup_middleware(app) -> None:
    """Setup all middleware for the application."""
    # Last added is executed first
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(RequestTrackingMiddleware)
