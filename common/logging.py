"""
Logging for the registration service.

Records are emitted as one JSON object per line (or a plain text line with
`LOG_FORMAT=simple`). Every record written while a request is in flight
carries that request's id, so a registration can be followed from the
multipart parse through storage and the insert.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

SERVICE_NAME = "user-registration-api"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord has; anything else arrived through `extra=`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

# Supabase client libraries and HTTP transports log every round trip at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "hpack", "postgrest", "storage3", "gotrue")

SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredFormatter(logging.Formatter):
    """Formats records as single-line JSON with request id and extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )

        try:
            return json.dumps(entry, default=str, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            return f"LOG_SERIALIZATION_ERROR: {e} | {entry['message']}"


class RequestContextLogger:
    """Binds a request id (given or generated) for the enclosed block."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or str(uuid.uuid4())
        self._token = None

    def __enter__(self):
        self._token = request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            request_id_var.reset(self._token)
            self._token = None


def setup_logging(level: str = "INFO", format_type: str = "structured") -> None:
    """
    Configure the root logger.

    Args:
        level: Logging level name; unknown names fall back to INFO
        format_type: 'structured' for JSON lines, anything else for plain text
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    formatter = StructuredFormatter() if format_type == "structured" else logging.Formatter(SIMPLE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_security_event(
    event_type: str,
    ip_address: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> None:
    get_logger("security").warning(
        f"Security event: {event_type}",
        extra={"event_type": event_type, "ip_address": ip_address, "details": details or {}}
    )


def log_business_event(
    event_type: str,
    entity_type: str,
    entity_id: str,
    action: str,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """Record a domain event such as a completed registration."""
    get_logger("business").info(
        f"Business event: {event_type}",
        extra={
            "event_type": event_type,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action": action,
            "details": details or {}
        }
    )


def log_storage_event(
    backend: str,
    action: str,
    location: str,
    size_bytes: Optional[int] = None,
) -> None:
    """Record a file written to, uploaded to or removed from a storage backend."""
    get_logger("storage").info(
        f"Storage {action}: {location}",
        extra={"backend": backend, "action": action, "location": location, "size_bytes": size_bytes}
    )


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    ip_address: Optional[str] = None,
) -> None:
    level = logging.WARNING if status_code >= 500 else logging.INFO
    get_logger("api").log(
        level,
        f"{method} {path} -> {status_code}",
        extra={
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "ip_address": ip_address,
        }
    )


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an exception with its error code and context when it carries them."""
    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **(context or {})
    }
    if getattr(error, "error_code", None):
        error_context["error_code"] = error.error_code
    if getattr(error, "context", None):
        error_context["exception_context"] = error.context

    get_logger("error").error(
        f"Error occurred: {type(error).__name__}",
        extra=error_context,
        exc_info=error
    )
