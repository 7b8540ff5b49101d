"""Structured JSON logging for batch upload runs.

Log lines go to stderr so the CLI can keep stdout for its progress bar and
summary. Every batch event carries the batch id.
"""

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone

SERVICE_NAME = "bulk-upload"


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.environ.get("SERVICE_NAME", SERVICE_NAME),
            "batch_id": getattr(record, "batch_id", ""),
        }

        # Merge extra structured fields
        if hasattr(record, "extra_data") and isinstance(record.extra_data, dict):
            log_entry.update(record.extra_data)

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Create a structured JSON logger writing to stderr.

    Safe to call at import time from every module; the handler is attached
    once per name and records do not propagate to the root logger.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
        logger.propagate = False
    return logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    batch_id: str = "",
    **kwargs,
) -> None:
    """Log a batch event; keyword arguments become top-level JSON fields."""
    extra = {"batch_id": batch_id, "extra_data": kwargs}
    logger.log(level, message, extra=extra)
