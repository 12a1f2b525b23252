from __future__ import annotations

import datetime as dt
import json
import logging
import sys
import uuid
from typing import Any

from loguru import logger as loguru_logger

from agentflow.core.time_utils import UTC

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_STANDARD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

_TIMING_FIELDS = frozenset(
    {"execution_time_ms", "processing_time_ms", "latency_ms", "duration_ms", "attempts"}
)


def _record_extra(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if not key.startswith("_") and key not in _STANDARD_FIELDS
    }


class EnhancedJsonFormatter(logging.Formatter):
    """JSON formatter for stdlib-only deployments, grouping timing fields separately."""

    def __init__(self, include_location: bool = True):
        super().__init__()
        self.include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": dt.datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_location:
            base.update(
                {"module": record.module, "function": record.funcName, "line": record.lineno}
            )

        if record.exc_info:
            base["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields: dict[str, Any] = {}
        timing_fields: dict[str, Any] = {}
        for key, value in _record_extra(record).items():
            if key == "correlation_id":
                base["correlation_id"] = value
            elif key in _TIMING_FIELDS:
                timing_fields[key] = value
            else:
                extra_fields[key] = value

        if timing_fields:
            base["timing"] = timing_fields
        if extra_fields:
            base["extra"] = extra_fields

        return json.dumps(base, ensure_ascii=False, default=str, separators=(",", ":"))


class InterceptHandler(logging.Handler):
    """Route stdlib logging records into loguru, keeping ``extra`` fields bound."""

    def emit(self, record: logging.LogRecord) -> None:
        level_to_use: int | str
        try:
            level_to_use = loguru_logger.level(record.levelname).name
        except ValueError:
            level_to_use = record.levelno

        loguru_logger.bind(logger_name=record.name, **_record_extra(record)).opt(
            depth=6, exception=record.exc_info
        ).log(level_to_use, record.getMessage())


def setup_json_logging(
    level: str = "INFO",
    use_loguru: bool = True,
    log_file: str | None = None,
    max_file_size: str = "100 MB",
    retention: str = "30 days",
) -> None:
    """Configure JSON logging with optional file output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_loguru: Route records through loguru sinks (recommended)
        log_file: Optional log file path for persistent logging
        max_file_size: Maximum size per log file (loguru format)
        retention: Log retention period (loguru format)
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(lvl)

    if use_loguru:
        loguru_logger.remove()
        loguru_logger.add(
            sys.stdout,
            level=level.upper(),
            serialize=True,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        if log_file:
            loguru_logger.add(
                log_file,
                level=level.upper(),
                serialize=True,
                rotation=max_file_size,
                retention=retention,
                compression="gz",
                enqueue=True,
            )
        root.addHandler(InterceptHandler())
        loguru_logger.info(
            "JSON logging initialized with loguru",
            setup_config={"level": level, "log_file": log_file},
        )
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(EnhancedJsonFormatter())
    root.addHandler(console_handler)

    if log_file:
        from logging.handlers import RotatingFileHandler

        file_handler = RotatingFileHandler(log_file, maxBytes=100 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(EnhancedJsonFormatter())
        root.addHandler(file_handler)

    logging.info(
        "JSON logging initialized with stdlib",
        extra={"setup_config": {"level": level, "log_file": log_file}},
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance by name."""
    return logging.getLogger(name)


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing errors across logs and responses."""
    return uuid.uuid4().hex[:12]


__all__ = [
    "EnhancedJsonFormatter",
    "InterceptHandler",
    "generate_correlation_id",
    "get_logger",
    "setup_json_logging",
]
