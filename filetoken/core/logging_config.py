"""Structured logging configuration.

Log records are emitted as JSON with:
- ISO8601 timestamp
- Log level and logger name
- Service metadata
- Event type (for filtering)
- Any structured data passed through ``extra``
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pythonjsonlogger import jsonlogger

from filetoken.core.config import Settings, get_settings


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with service metadata."""

    def __init__(self, *args, service: dict[str, str] | None = None, **kwargs):
        super().__init__(
            *args,
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={
                "asctime": "@timestamp",
                "levelname": "level",
                "name": "logger",
            },
            **kwargs,
        )
        self._service = service or {}

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["@timestamp"] = datetime.now(timezone.utc).isoformat()

        if self._service:
            log_record["service"] = self._service

        if "level" in log_record:
            log_record["level"] = log_record["level"].upper()

        if "event_type" not in log_record:
            log_record["event_type"] = f"log.{record.name}"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure JSON logging for the application.

    Sets up a console handler and, when the log directory exists, a daily
    rotating file handler. Call this at application startup.
    """
    settings = settings or get_settings()

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    root_logger.handlers.clear()

    formatter = ServiceJsonFormatter(
        service={
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = Path(settings.LOG_DIR)
    if log_dir.is_dir():
        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_dir / "filetoken.log",
            when="midnight",
            interval=1,
            backupCount=30,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configure_uvicorn_loggers(formatter)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "event_type": "system.startup.logging_configured",
            "log_level": settings.LOG_LEVEL.upper(),
            "file_logging": log_dir.is_dir(),
        },
    )


def _configure_uvicorn_loggers(formatter: logging.Formatter) -> None:
    """Route uvicorn loggers through the JSON formatter."""
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
