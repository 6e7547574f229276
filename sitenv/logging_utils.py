"""
Structured JSON logging utilities.
One JSON line per event so resolution decisions can be aggregated.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Dict, Any
from sitenv.config import settings


# Attributes every LogRecord carries; anything else was passed via extra=
_RESERVED_ATTRS = frozenset([
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName",
])


class JSONFormatter(logging.Formatter):
    """Custom formatter to output logs as JSON."""
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        # Request and resolution context passed through extra=
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value
        
        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)
        
        return json.dumps(log_data, default=str)


# Configure logger
logger = logging.getLogger("sitenv")
logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

# Remove default handlers
logger.handlers.clear()

# Add JSON handler
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(JSONFormatter())
logger.addHandler(handler)

# Prevent propagation to root logger
logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return a child of the sitenv logger, sharing its JSON handler."""
    return logger.getChild(name)


def log_request(log_data: Dict[str, Any]):
    """
    Log a request with structured data.
    
    Args:
        log_data: Dictionary with request metadata
    """
    # Determine log level based on status code
    status = log_data.get("status", 500)
    if status >= 500:
        level = logging.ERROR
    elif status >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO
    
    logger.log(
        level,
        f"{log_data.get('method')} {log_data.get('path')} -> {status}",
        extra=log_data,
    )
