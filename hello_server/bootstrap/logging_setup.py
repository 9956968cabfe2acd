"""Logging configuration utilities for the HTTP server."""

import gzip
import json
import logging
import os
import re
import shutil
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from hello_server.bootstrap.config import LogSettings
from hello_server.domain.correlation_id import CorrelationLoggerAdapter

LOGGER_NAME = "hello_server"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
SECONDS_PER_DAY = 24 * 60 * 60

SENSITIVE_PATTERNS = [
    re.compile(r"(?i)(authorization|token|signature|password|secret|api[_-]?key)"),
    re.compile(r"\b[A-Fa-f0-9]{32,}\b"),
    re.compile(r"\b[A-Za-z0-9+/]{32,}={0,2}\b"),
]

EXTRA_KEYS = [
    "event",
    "client",
    "method",
    "route",
    "status_code",
    "bytes_in",
    "bytes_out",
    "duration_ms",
    "key",
    "browser",
    "os",
    "error_type",
    "error",
    "limit",
    "host",
    "port",
    "db",
    "cache_enabled",
    "log_destination",
    "log_level",
    "use_json",
    "destination",
    "socket_timeout",
    "shutdown_grace_seconds",
    "remaining_workers",
    "drained",
    "signal",
]


def redact_sensitive(value: str) -> str:
    """Redact sensitive data from log values."""
    if not value:
        return value

    for pattern in SENSITIVE_PATTERNS:
        if pattern.search(value):
            return "[REDACTED]"

    return value


class CorrelationIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Ensure correlation_id field exists in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    """JSON formatter with stable key ordering for structured logging."""

    def __init__(self, datefmt: Optional[str] = None):
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
        }

        for key in EXTRA_KEYS:
            if hasattr(record, key):
                value = getattr(record, key)
                if isinstance(value, str):
                    value = redact_sensitive(value)
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, sort_keys=True, default=str)


class CompressingRotatingFileHandler(RotatingFileHandler):
    """Size-rotated file handler that gzips backups and prunes old ones."""

    def __init__(self, filename: Path, settings: LogSettings) -> None:
        super().__init__(
            filename,
            maxBytes=max(0, settings.max_size_mb) * 1024 * 1024,
            backupCount=max(0, settings.max_backups),
            encoding="utf-8",
        )
        self.max_age_days = settings.max_age_days
        if settings.compress:
            self.namer = self._gzip_namer
            self.rotator = self._gzip_rotator

    @staticmethod
    def _gzip_namer(default_name: str) -> str:
        return f"{default_name}.gz"

    @staticmethod
    def _gzip_rotator(source: str, dest: str) -> None:
        with open(source, "rb") as source_file, gzip.open(dest, "wb") as dest_file:
            shutil.copyfileobj(source_file, dest_file)
        os.remove(source)

    def backup_files(self) -> list[Path]:
        base = Path(self.baseFilename)
        return sorted(base.parent.glob(f"{base.name}.*"))

    def prune_expired_backups(self, now: Optional[float] = None) -> None:
        """Delete rotated files whose modification time exceeds the max age."""
        if self.max_age_days <= 0:
            return
        cutoff = (now if now is not None else time.time()) - (
            self.max_age_days * SECONDS_PER_DAY
        )
        for backup in self.backup_files():
            try:
                if backup.stat().st_mtime < cutoff:
                    backup.unlink()
            except OSError:
                continue

    def doRollover(self) -> None:
        super().doRollover()
        self.prune_expired_backups()


def _resolve_level(level_name: str) -> int:
    """Translate text level names into logging module numeric levels."""
    level = getattr(logging, level_name.upper(), None)
    if isinstance(level, int):
        return level
    return logging.INFO


def _build_handler(
    destination: Optional[str],
    level: int,
    use_json: bool = True,
    settings: Optional[LogSettings] = None,
) -> logging.Handler:
    """Create a stdout or rotating file handler for the configured logger."""
    if destination and destination.lower() != "stdout":
        target_path = Path(destination)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = CompressingRotatingFileHandler(
            target_path, settings or LogSettings()
        )
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if use_json:
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    handler.addFilter(CorrelationIdFilter())
    return handler


def configure_logging(
    level: str = "INFO",
    destination: Optional[str] = None,
    use_json: bool = True,
    settings: Optional[LogSettings] = None,
) -> CorrelationLoggerAdapter:
    """Configure and return the project logger with the requested handler."""
    # A failing log write must never take a request down with it.
    logging.raiseExceptions = False

    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = _resolve_level(level)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handler = _build_handler(destination, numeric_level, use_json, settings)
    logger.addHandler(handler)

    adapter = CorrelationLoggerAdapter(logger, {})
    adapter.info(
        "Logging configured",
        extra={
            "event": "logging_configured",
            "destination": destination or "stdout",
            "use_json": use_json,
        },
    )
    return adapter
