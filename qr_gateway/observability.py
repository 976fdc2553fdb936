"""
Observability Module - Logging and Request Context

Provides:
- Structured JSON logging with request IDs
- Request/response logging middleware

Configuration:
- QR_GATEWAY_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- QR_GATEWAY_LOG_FORMAT: json, text (default: json in production)
- QR_GATEWAY_ENV: development or production

Usage:
    from qr_gateway.observability import get_logger, RequestContextMiddleware

    logger = get_logger(__name__)
    logger.info("QR code generated", kind="person", frame=True)
"""

import json
import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

SERVICE_NAME = "qr-gateway"

# Context variable for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_RESERVED_RECORD_FIELDS = frozenset(vars(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None)
)) | {"message", "asctime"}

# Probes and assets; logged at DEBUG only
QUIET_PATHS = ("/health", "/status", "/static/")

# Query parameters that select a follow target; only their names are logged
TARGET_PARAMS = ("name", "organisation_id", "organisation", "function_tag")


# ============================================================
# CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class LogSettings:
    """Logging options, read from the environment by setup_logging()."""
    level: int = logging.INFO
    json_output: bool = True

    @classmethod
    def from_env(cls) -> "LogSettings":
        level = logging.getLevelName(os.environ.get("QR_GATEWAY_LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

        log_format = os.environ.get("QR_GATEWAY_LOG_FORMAT", "").lower()
        if log_format in ("json", "text"):
            json_output = log_format == "json"
        else:
            json_output = os.environ.get("QR_GATEWAY_ENV", "production").lower() != "development"

        return cls(level=level, json_output=json_output)


# ============================================================
# FORMATTERS
# ============================================================

def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Keyword fields passed through ContextLogger."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_FIELDS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    {"timestamp": "...", "level": "INFO", "service": "qr-gateway",
     "logger": "qr_gateway.api.routes", "message": "QR code generated",
     "request_id": "1f2e3d4c", "kind": "person", "frame": true}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        for key, value in _record_fields(record).items():
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Single-line output for development, fields appended as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S")
        request_id = request_id_var.get()
        prefix = f"[{request_id[:8]}] " if request_id else ""

        fields = " ".join(f"{k}={v}" for k, v in _record_fields(record).items())
        line = f"{timestamp} {record.levelname:8} {prefix}{record.name}: {record.getMessage()}"
        if fields:
            line += f" {fields}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter taking context fields as keyword arguments.

        logger.info("Directory lookup", url=url, matches=3)
    """

    _LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")

    def process(self, msg: str, kwargs: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        for key in [k for k in kwargs if k not in self._LOGGING_KWARGS]:
            extra[key] = kwargs.pop(key)
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Structured logger for a module (pass __name__)."""
    return ContextLogger(logging.getLogger(name), {})


def setup_logging(settings: Optional[LogSettings] = None) -> None:
    """
    Install the gateway's handler on the root logger.

    Replaces any handler already installed, so calling it twice is harmless.
    """
    settings = settings or LogSettings.from_env()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(settings.level)
    handler.setFormatter(StructuredFormatter() if settings.json_output else TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    # Request logging is done by RequestContextMiddleware
    for noisy in ("uvicorn.access", "httpx", "httpcore", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ============================================================
# REQUEST CONTEXT MIDDLEWARE
# ============================================================

def _is_quiet(path: str) -> bool:
    return any(path == p or (p.endswith("/") and path.startswith(p)) for p in QUIET_PATHS)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Request ID and access log for every request.

    The request ID comes from X-Request-ID when the proxy sets one and is
    echoed back in the response. Target parameter values (person names)
    are not logged, only which parameter was used.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        token = request_id_var.set(request_id)

        logger = get_logger("qr_gateway.request")
        path = request.url.path
        fields = {
            "method": request.method,
            "path": path,
            "target_param": next((p for p in TARGET_PARAMS if request.query_params.get(p)), None),
        }
        start_time = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    f"{request.method} {path} -> 500",
                    status_code=500,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                    **fields,
                )
                raise

            if _is_quiet(path):
                level = logging.DEBUG
            elif response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO

            logger.log(
                level,
                f"{request.method} {path} -> {response.status_code}",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                **fields,
            )

            response.headers["X-Request-ID"] = request_id
            return response

        finally:
            request_id_var.reset(token)
