"""
Logging configuration for the ironing service.

Each line is stamped with the ID of the HTTP request that produced it, so a
pickup confirmation or a rejected status change can be traced back to one
call. Work outside a request (seed script, migrations) shows "-".

Usage:
    from ironing_service.logging_config import setup_logging
    setup_logging()  # Call once at application startup

Environment variables:
    LOG_LEVEL: Set to DEBUG, INFO, WARNING, ERROR, or CRITICAL (default: INFO)
"""
import logging
import os
import sys
from contextvars import ContextVar
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Chatty at INFO; only shown when running at DEBUG
NOISY_LOGGERS = ("httpx", "twilio", "sqlalchemy.engine")

# Set by RequestIDMiddleware for the duration of a request
current_request_id: ContextVar[str] = ContextVar("current_request_id", default="-")

_handler: Optional[logging.Handler] = None


class RequestIDFilter(logging.Filter):
    """Copies the current request ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id.get()
        return True


def resolve_level(level: Optional[str] = None) -> str:
    """Explicit level, else LOG_LEVEL, else INFO. Unknown names become INFO."""
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = level.upper()
    return level if level in VALID_LEVELS else "INFO"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the application.

    Installs one stdout handler on the root logger the first time it is
    called; later calls only change levels.
    """
    global _handler

    level = resolve_level(level)
    numeric_level = getattr(logging, level)

    root = logging.getLogger()
    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        _handler.addFilter(RequestIDFilter())
        root.addHandler(_handler)
    root.setLevel(numeric_level)

    logging.getLogger("ironing_service").setLevel(numeric_level)

    if level != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at %s level", level)
