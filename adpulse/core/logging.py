"""AdPulse — Structured JSON Logging."""

import json
import logging
import sys
from datetime import datetime, timezone

from adpulse.config import settings

# Context fields callers may attach with ``extra=``
CONTEXT_FIELDS = ("account_id", "date", "provider", "table", "rows", "fetcher")


class JSONFormatter(logging.Formatter):
    """Produces structured JSON log lines for the batch run."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        return json.dumps(log_entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with structured JSON handler."""
    logger = logging.getLogger(f"adpulse.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
