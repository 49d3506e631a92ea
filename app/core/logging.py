"""Structured JSON logging.

Every log line carries a correlation id: the X-Trace-Id of the HTTP request,
or "<trace id>/import-<n>" while a workbook import batch runs inside it.
Catalog extras (property_id, row, status, import counts, duration) are copied
into the JSON entry when passed through `extra=`.
"""
import logging
import json
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from app.config import settings

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(batch_id: str | None = None) -> str:
    """Set correlation ID for the current context. Returns the ID."""
    cid = batch_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def new_batch_id(kind: str) -> str:
    """Id for a batch (e.g. one workbook import) nested under the current request's trace id."""
    batch = f"{kind}-{uuid.uuid4().hex[:8]}"
    parent = correlation_id_var.get("").split("/", 1)[0]
    return f"{parent}/{batch}" if parent else batch


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        cid = correlation_id_var.get("")
        if cid:
            log_entry["correlation_id"] = cid

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in ("property_id", "row", "status", "success_count", "error_count", "duration"):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging() -> None:
    """Configure application-wide logging."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
