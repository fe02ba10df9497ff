"""
Structured logging configuration.

Every log line is a single JSON object so that log shippers can
index the action, the acting party and the account involved
without parsing free text.
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone

LOGGER_PREFIX = "teller_ledger"

# Extra attributes copied from the LogRecord when present
_CONTEXT_FIELDS = ("action", "actor", "account_no", "code", "status")

_configured = False
_lock = threading.Lock()


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the teller_ledger namespace."""
    if name.startswith(LOGGER_PREFIX):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def configure_logging(level: str = "INFO", stream=None) -> logging.Logger:
    """
    Attach a JSON handler to the package logger.

    Safe to call more than once; only the first call installs
    a handler. Later calls just adjust the level.
    """
    global _configured
    logger = logging.getLogger(LOGGER_PREFIX)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    with _lock:
        if _configured:
            return logger
        _configured = True

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    # Prevent propagation to avoid duplicate logs
    logger.propagate = False
    return logger
