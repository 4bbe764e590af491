"""Logging setup shared by every entry point that embeds the engine."""

import json
import logging
from typing import Optional

from .config import Settings, settings as default_settings

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = set(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """One JSON object per log line, with ``extra=`` fields merged in."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_obj[key] = value
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def configure_logging(config: Optional[Settings] = None) -> logging.Handler:
    """Install a single root handler using the configured format and level."""
    config = config or default_settings

    handler = logging.StreamHandler()
    if config.structured_logs:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    logging.root.handlers = [handler]
    logging.root.setLevel(config.log_level)
    return handler
