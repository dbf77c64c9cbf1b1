"""Logging configuration for the CLI and the HTTP server."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from tms.infrastructure.config import Config

_HANDLER_MARK = "_tms_handler"


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for the optional log file."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(config: Config) -> logging.Logger:
    """Attach console (and optional JSON file) handlers to the ``tms`` logger.

    Safe to call more than once; handlers are only installed the first time.
    """
    logger = logging.getLogger("tms")
    logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    if any(getattr(h, _HANDLER_MARK, False) for h in logger.handlers):
        return logger

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(config.LOG_FORMAT))
    setattr(console, _HANDLER_MARK, True)
    logger.addHandler(console)

    if config.LOG_FILE:
        file_handler = logging.FileHandler(config.LOG_FILE, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        setattr(file_handler, _HANDLER_MARK, True)
        logger.addHandler(file_handler)

    return logger
