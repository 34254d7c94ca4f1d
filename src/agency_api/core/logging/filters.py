"""
Logging filters.

- RequestIdFilter: stamps `record.request_id` from a contextvar that the
  request middleware sets, so every line logged while serving a request can be
  correlated. Records outside a request get "-".
- RedactFilter: masks attributes with sensitive names (password, token, ...)
  that a caller passed through `extra=`.

contextvars (not threading.local) because one event-loop thread serves many
requests at once, and the value must follow each request across `await`s.
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """Set the request id for the current context; returns a token for `reset_request_id`."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantee a `request_id` attribute on every record.

    Precedence: an explicit `extra={"request_id": ...}`, then the contextvar,
    then "-". Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {
        "password",
        "db_password",
        "secret",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
    }
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True


__all__ = [
    "set_request_id",
    "reset_request_id",
    "get_request_id",
    "RequestIdFilter",
    "RedactFilter",
]
