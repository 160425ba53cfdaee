"""Centralized logging configuration for the application."""
from __future__ import annotations

import logging
import logging.handlers
import os
import time

from app.core.config import settings

LEDGER_LOGGER_NAME = "app.ledger"
LEDGER_LOG_FILE = "ledger.log"


def _rotating_file_handler(filename: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        os.path.join(settings.LOG_DIR, filename),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> None:
    """Configure application, ledger and uvicorn loggers.

    Everything goes to ``app.log`` and the console. Balance mutations from the
    ``app.ledger`` logger are also written to ``ledger.log``, an audit trail of
    bulk deletes that only carries timestamp, level and message.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    logging.Formatter.converter = time.gmtime
    formatter = logging.Formatter(
        "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    ledger_formatter = logging.Formatter(
        "%(asctime)sZ | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [_rotating_file_handler("app.log", formatter), stream_handler]

    ledger_logger = logging.getLogger(LEDGER_LOGGER_NAME)
    ledger_logger.setLevel(log_level)
    ledger_logger.handlers = [_rotating_file_handler(LEDGER_LOG_FILE, ledger_formatter)]
    ledger_logger.propagate = True

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)


__all__ = ["LEDGER_LOGGER_NAME", "setup_logging"]
