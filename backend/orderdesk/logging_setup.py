"""
OrderDesk Backend: Logging Configuration
========================================

What:  Configures the standard-library root logger once at start-up.
How:   - stdout handler (containers capture it)
       - when LOG_TO_FILE: daily-rotated `app.log` (all levels) and
         `error.log` (ERROR and above) in LOG_DIRECTORY, keeping
         LOG_RETENTION_DAYS rotated files each
       - RequestIdFilter stamps every record with the current request id

Format: 2024-01-15T12:00:00 [INFO] orderdesk.access [3f2a...]: GET /users 200 4.1ms
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import List

from orderdesk.config import Settings
from orderdesk.middleware.request_id import request_id_var

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
APP_LOG_FILE = "app.log"
ERROR_LOG_FILE = "error.log"

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "aiosqlite")


class RequestIdFilter(logging.Filter):
    """Adds `record.request_id` ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get("") or "-"
        return True


def _rotating_handler(path: Path, retention_days: int, level: int) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        path,
        when="midnight",
        backupCount=retention_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setLevel(level)
    return handler


def build_handlers(config: Settings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_to_file:
        directory = Path(config.log_directory)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _rotating_handler(directory / APP_LOG_FILE, config.log_retention_days, logging.NOTSET)
        )
        handlers.append(
            _rotating_handler(directory / ERROR_LOG_FILE, config.log_retention_days, logging.ERROR)
        )

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    request_filter = RequestIdFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)
    return handlers


def setup_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        handlers=build_handlers(config),
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
