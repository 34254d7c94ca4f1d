"""
Log formatters.

  - JsonFormatter: one JSON object per line for log collectors. Carries the
    service name, environment, package version and request id, plus every
    attribute passed through `extra=` (entity, operation, duration_ms, ...).
  - ColorFormatter: compact ANSI-colored lines for a developer terminal.

The builder picks one through LOG_FORMAT ("json" / "text").
"""

import json
import logging
from importlib import metadata as importlib_metadata
from logging import LogRecord
from typing import Any

DISTRIBUTION_NAME = "agency-api"

# Attributes every LogRecord has; anything else on the record came from `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "request_id", "taskName"}


def get_project_version(default: str = "unknown") -> str:
    """Version of the installed distribution, or `default` when running from a bare checkout."""
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        return default


PROJECT_VERSION = get_project_version()


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Args:
        env: deployment environment, e.g. "production".
        service: logical service name written on every line.
        datefmt: passed to logging.Formatter.formatTime.

    Never raises on odd `extra` values: anything json cannot encode is
    written as its str().
    """

    def __init__(self, *, env: str | None = None, service: str = DISTRIBUTION_NAME, datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "request_id": getattr(record, "request_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """TIMESTAMP | LEVEL | LOGGER | REQUEST_ID | MESSAGE, with the level colorized."""

    COLOR_CODES = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;41m",
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        line = (
            f"{timestamp} | {color}{record.levelname:<8}{reset} | "
            f"{record.name:<36} | "
            f"{getattr(record, 'request_id', '-'):<36} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            line = line + "\n" + self.formatException(record.exc_info)

        return line


__all__ = ["JsonFormatter", "ColorFormatter", "get_project_version", "PROJECT_VERSION"]
