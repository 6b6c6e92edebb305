"""Structured JSON logging configuration."""

import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from studyhub.core.config import settings

NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
}


class StudyHubJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter emitting the same envelope for every record."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        # Envelope shared by every line
        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["event"] = record.getMessage()
        log_record["env"] = settings.ENV

        # Replaced by "event" and "timestamp"
        log_record.pop("message", None)
        log_record.pop("asctime", None)


def setup_logging(level: str | None = None) -> None:
    """Configure root logging to emit JSON lines on stdout."""
    root_logger = logging.getLogger()
    level_name = (level or settings.LOG_LEVEL).upper()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Replace whatever handlers were installed before
    root_logger.handlers.clear()

    formatter = StudyHubJsonFormatter(
        "%(timestamp)s %(level)s %(logger)s %(event)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # JSON to stdout in every environment
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Quiet third-party loggers
    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
