"""
Logging Module for TrendSpotter.

Architecture:
- Console handler with colored levels for development
- Rotating file handler per service (logs/<service>.log)
- JSON output for production, carrying the `extra={...}` context
- Execution time decorator for pipeline runs

Environment:
    LOG_LEVEL     DEBUG | INFO | WARNING | ERROR | CRITICAL (default INFO)
    ENVIRONMENT   development | production (production switches to JSON)
    LOG_TO_FILE   "true" / "false" (default true)
    LOG_DIR       directory for rotating log files (default <project>/logs)
"""

import functools
import json
import logging
import os
import sys
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).parent.parent
LOGS_DIR = Path(os.getenv("LOG_DIR", str(PROJECT_ROOT / "logs")))

# Attributes present on every LogRecord; anything else came in through `extra`.
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _record_context(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    One object per line: timestamp, level, service, message, location and context.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        context = _record_context(record)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Colored console formatter for development.
    Appends the `extra` context as key=value pairs.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        line = super().format(record)
        line = line.replace(record.levelname, f"{color}{record.levelname:8}{self.RESET}", 1)

        context = _record_context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            line = f"{line} | {pairs}"
        return line


def get_logger(
    service_name: str,
    log_level: Optional[str] = None,
    enable_console: bool = True,
    enable_file: Optional[bool] = None,
    enable_json: Optional[bool] = None,
) -> logging.Logger:
    """
    Get a configured logger for a service.

    Args:
        service_name: Name of the service (e.g., 'pipeline', 'ebay-search')
        log_level: Logging level (defaults to LOG_LEVEL env var)
        enable_console: Enable console output
        enable_file: Enable rotating file output (defaults to LOG_TO_FILE env var)
        enable_json: Use JSON format (defaults to True in production)

    Returns:
        Configured logger instance

    Usage:
        logger = get_logger('pipeline')
        logger.info('Cache hit', extra={'category_id': '293'})
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, log_level, logging.INFO)

    is_production = os.getenv("ENVIRONMENT", "development").lower() == "production"
    if enable_json is None:
        enable_json = is_production
    if enable_file is None:
        enable_file = os.getenv("LOG_TO_FILE", "true").lower() == "true"

    logger = logging.getLogger(service_name)
    logger.setLevel(level)
    logger.handlers.clear()  # Avoid duplicate handlers on repeated calls

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        if enable_json:
            console_handler.setFormatter(StructuredFormatter())
        else:
            console_handler.setFormatter(ColoredConsoleFormatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            ))
        logger.addHandler(console_handler)

    if enable_file:
        try:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOGS_DIR / f"{service_name}.log",
                maxBytes=10 * 1024 * 1024,  # 10 MB
                backupCount=5,
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"File logging disabled: {e}")
        else:
            file_handler.setLevel(level)
            # Files are always JSON so they stay machine-readable
            file_handler.setFormatter(StructuredFormatter())
            logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def log_execution_time(logger: logging.Logger):
    """
    Decorator to log function execution time.

    Usage:
        @log_execution_time(logger)
        def get_category_data(category_id):
            ...
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                execution_time = time.perf_counter() - start_time
                logger.error(
                    f"{func.__name__} failed after {execution_time:.2f}s",
                    extra={"execution_time_seconds": round(execution_time, 3)},
                )
                raise
            execution_time = time.perf_counter() - start_time
            logger.info(
                f"{func.__name__} completed",
                extra={"execution_time_seconds": round(execution_time, 3)},
            )
            return result

        return wrapper

    return decorator
