"""
Handler factories for logging.dictConfig.

Each function returns a handler *config dict* (not a handler object), so
`make_dict_config` stays declarative and the factories are trivial to test.

    console        every level, stream, formatter from LOG_FORMAT
    file           every level, LOG_DIR/app.log, rotating
    error_file     ERROR and above, LOG_DIR/errors.log, rotating, always JSON
    error_console  ERROR and above, stream, always JSON (used instead of the files)
"""

from pathlib import Path

from agency_api.config.settings import Settings

_FILTERS = ["request_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": list(_FILTERS),
    }


def _rotating_file(settings: Settings, filename: str, *, level: str, formatter: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": formatter,
        "level": level,
        "filename": str(Path(settings.LOG_DIR) / filename),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


def get_file_handler(settings: Settings) -> dict:
    return _rotating_file(settings, "app.log", level=settings.LOG_LEVEL, formatter=_formatter_name(settings))


def get_error_file_handler(settings: Settings) -> dict:
    return _rotating_file(settings, "errors.log", level="ERROR", formatter="json")


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": list(_FILTERS),
    }


__all__ = [
    "get_console_handler",
    "get_file_handler",
    "get_error_file_handler",
    "get_error_console_handler",
]
