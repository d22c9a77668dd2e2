"""
Logging for the PDF storage API.

Every line carries the request id and, once the bearer key has been checked,
the client id ("user" or "admin"). With the structured format each record is
one JSON object per line; `extra=` fields become top-level keys.
"""

import json
import logging
import sys
import uuid
from typing import Optional, Dict, Any
from contextvars import ContextVar
from datetime import datetime, timezone

request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
client_id_var: ContextVar[Optional[str]] = ContextVar('client_id', default=None)

_RESERVED_RECORD_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'exc_info', 'exc_text', 'stack_info',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'getMessage',
    'taskName', 'message',
}

QUIET_LOGGERS = ("uvicorn", "fastapi", "httpx", "botocore", "boto3", "s3transfer")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for key, var in (("request_id", request_id_var), ("client_id", client_id_var)):
            value = var.get()
            if value:
                entry[key] = value

        if record.exc_info and record.exc_info[0]:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS
        )

        try:
            return json.dumps(entry, default=str, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            return f"LOG_SERIALIZATION_ERROR: {e} | {entry['message']}"


class RequestContextLogger:
    """Binds a request id (generated when the caller sent none) for the duration of a request."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or str(uuid.uuid4())
        self._token = None

    def __enter__(self):
        self._token = request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        request_id_var.reset(self._token)


def setup_logging(level: str = "INFO", format_type: str = "structured") -> None:
    """
    Replace the root handlers with a single stdout handler.

    `format_type` is "structured" for JSON lines or anything else for a plain
    human-readable format. SDK and server loggers are held at WARNING.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if format_type == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_performance(operation: str, duration_ms: float, success: bool = True, **kwargs) -> None:
    """Timing of a store call, e.g. the blob write of a direct upload."""
    get_logger("performance").info(
        f"Performance metric: {operation}",
        extra={"operation": operation, "duration_ms": duration_ms, "success": success, **kwargs},
    )


def log_security_event(
    event_type: str,
    client_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Failed authentication, quota rejections and upload ownership violations."""
    get_logger("security").warning(
        f"Security event: {event_type}",
        extra={
            "event_type": event_type,
            "client_id": client_id,
            "ip_address": ip_address,
            "details": details or {},
        },
    )


def log_business_event(
    event_type: str,
    entity_type: str,
    entity_id: str,
    action: str,
    client_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """PDF lifecycle changes: upload requested, stored, deleted."""
    get_logger("business").info(
        f"Business event: {event_type}",
        extra={
            "event_type": event_type,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action": action,
            "client_id": client_id,
            "details": details or {},
        },
    )


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None
) -> None:
    get_logger("api").info(
        f"API request: {method} {path}",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_id": client_id,
            "ip_address": ip_address,
            "user_agent": user_agent,
        },
    )


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    client_id: Optional[str] = None
) -> None:
    """Unhandled error with its traceback; API exceptions add their code and context."""
    extra = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "client_id": client_id,
        **(context or {}),
    }
    if hasattr(error, 'error_code'):
        extra["error_code"] = error.error_code
        extra["exception_context"] = getattr(error, 'context', None)

    get_logger("error").error(f"Error occurred: {type(error).__name__}", extra=extra, exc_info=True)
