"""
Logging builder: turn Settings into a dictConfig mapping and apply it.

Optional queue mode (LOG_USE_QUEUE): producers only enqueue records, and a
background QueueListener runs the real handlers. The request-id and redaction
filters are attached to the QueueHandler so they run in the producing context,
where the request-id contextvar is still set.

Settings used:
  - LOG_LEVEL, LOG_FORMAT, LOG_TO_STDOUT, LOG_DIR, ENABLE_SQL_LOGGING, ENV, APP_NAME
  - LOG_USE_QUEUE: enable queue mode
  - LOG_QUEUE_MAX_SIZE: > 0 bounds the queue, 0 leaves it unbounded
  - LOG_QUEUE_BLOCKING: with a bounded queue, block producers instead of dropping
"""

from __future__ import annotations

import logging
import logging.config
import queue as _queue
import threading
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Optional

from agency_api.config.settings import Settings

from .filters import RedactFilter, RequestIdFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

_QUEUE_LISTENER: Optional[QueueListener] = None
_QUEUE: Optional[_queue.Queue] = None
_QUEUE_HANDLER: Optional[QueueHandler] = None

_DROPPED_LOGS_COUNT = 0
_DROPPED_LOGS_LOCK = threading.Lock()


class NonBlockingQueueHandler(QueueHandler):
    """
    QueueHandler that drops (and counts) records when a bounded queue is full
    instead of blocking the producer.
    """

    def emit(self, record: logging.LogRecord) -> None:
        global _DROPPED_LOGS_COUNT
        try:
            self.queue.put_nowait(self.prepare(record))
        except _queue.Full:
            with _DROPPED_LOGS_LOCK:
                _DROPPED_LOGS_COUNT += 1
            self.handleError(record)


def get_queue_stats() -> dict:
    with _DROPPED_LOGS_LOCK:
        return {"dropped_logs": _DROPPED_LOGS_COUNT, "queue_present": _QUEUE is not None}


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping.

    Handlers: console always; file + error_file when writing to LOG_DIR,
    otherwise error_console. Loggers: root, uvicorn.error, uvicorn.access,
    sqlalchemy.engine (DEBUG only with ENABLE_SQL_LOGGING).
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": settings.APP_NAME,
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration, then switch to queue mode if enabled.

    In queue mode the handlers installed by dictConfig are detached from every
    logger, handed to a QueueListener, and replaced on the root logger by a
    single QueueHandler.
    """
    global _QUEUE_LISTENER, _QUEUE, _QUEUE_HANDLER

    # a previous call in this process may have started a listener
    stop_queue_logging()

    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    # covers records from loggers that bypass the configured handlers
    root = logging.getLogger()
    if not any(isinstance(f, RequestIdFilter) for f in root.filters):
        root.addFilter(RequestIdFilter())

    if not settings.LOG_USE_QUEUE:
        return

    current_handlers = list(root.handlers)
    if not current_handlers:
        return

    handlers_to_move = set(current_handlers)
    for logger_obj in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger_obj, logging.Logger):
            for h in list(logger_obj.handlers):
                if h in handlers_to_move:
                    logger_obj.removeHandler(h)
    for h in current_handlers:
        root.removeHandler(h)

    max_size = settings.LOG_QUEUE_MAX_SIZE or 0
    log_queue: _queue.Queue = _queue.Queue(max_size) if max_size > 0 else _queue.Queue()

    if max_size > 0 and not settings.LOG_QUEUE_BLOCKING:
        qh: QueueHandler = NonBlockingQueueHandler(log_queue)
    else:
        qh = QueueHandler(log_queue)
    qh.addFilter(RequestIdFilter())
    qh.addFilter(RedactFilter())

    listener = QueueListener(log_queue, *current_handlers, respect_handler_level=True)
    listener.start()
    root.addHandler(qh)

    _QUEUE_LISTENER = listener
    _QUEUE = log_queue
    _QUEUE_HANDLER = qh


def stop_queue_logging() -> None:
    """Flush and stop the background listener, if one is running, and detach its QueueHandler."""
    global _QUEUE_LISTENER, _QUEUE, _QUEUE_HANDLER
    listener = _QUEUE_LISTENER
    if listener is None:
        return

    try:
        listener.stop()
    except Exception:
        logging.getLogger(__name__).exception("Failed to stop QueueListener cleanly")
    finally:
        if _QUEUE_HANDLER is not None:
            logging.getLogger().removeHandler(_QUEUE_HANDLER)
        _QUEUE_LISTENER = None
        _QUEUE = None
        _QUEUE_HANDLER = None


__all__ = [
    "NonBlockingQueueHandler",
    "get_queue_stats",
    "make_dict_config",
    "setup_logging",
    "stop_queue_logging",
]
